def major_alerts(calamities, predictions):
    """Historical severe events and projected high/critical risks, for the alerts panel."""
    historical = [
        {
            "source": "historical",
            "title": f"{c.type} ({c.year})",
            "severity": c.intensity,
            "month": c.month,
        }
        for c in calamities
        if c.is_severe
    ]
    projected = [
        {
            "source": "projected",
            "title": p.month,
            "severity": p.risk_level,
            "description": p.description,
            "predictedTemp": p.predicted_temp,
        }
        for p in predictions
        if p.is_alert
    ]
    return {
        "count": len(historical) + len(projected),
        "historical": historical,
        "projected": projected,
    }

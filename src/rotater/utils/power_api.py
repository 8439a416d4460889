import logging

import requests

from rotater.config import POWER_MONTHLY_URL, POWER_TIMEOUT
from rotater.errors import ClimateDataError

logger = logging.getLogger(__name__)


def fetch_power_api(start, end, latitude, longitude, parameters, community="AG"):
	"""
	Fetch monthly point data from NASA POWER and return the JSON response.
	Args:
		start (int): Start year (e.g., 2020)
		end (int): End year (e.g., 2025)
		latitude (float): Latitude value
		longitude (float): Longitude value
		parameters (list): List of parameter strings (e.g., ['T2M', 'PRECTOTCORR'])
		community (str): POWER user community, 'AG' for agroclimatology
	Returns:
		dict: JSON response from API
	Raises:
		ClimateDataError: on a non-OK response
	"""
	params = {
		"parameters": ",".join(parameters),
		"community": community,
		"longitude": longitude,
		"latitude": latitude,
		"start": start,
		"end": end,
		"format": "JSON",
	}
	logger.debug("POWER request %s %s", POWER_MONTHLY_URL, params)
	response = requests.get(POWER_MONTHLY_URL, params=params, timeout=POWER_TIMEOUT)
	if not response.ok:
		raise ClimateDataError(
			f"NASA API Error: {response.status_code} {response.reason} {response.text}"
		)
	return response.json()


if __name__ == "__main__":
	result = fetch_power_api(2020, 2021, 23.777176, 90.399452, ["T2M", "PRECTOTCORR"])
	try:
		print(result['properties']['parameter']['T2M'])
	except KeyError as e:
		print("Error printing T2M data:", e)

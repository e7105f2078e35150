"""OpenWeatherMap forecast data source.

Predicts tomorrow's trail status from the 5-day / 3-hour forecast (API key
required).

Public API:
  - client: API URL, WeatherOptions, unit helpers
  - forecast: fetch_forecast, parse_forecast
  - models: ForecastPoint, ForecastStats
  - rules: Rule, RULES, apply_rules
  - prediction: select_tomorrow, predict, fetch_weather_prediction
"""

from trail_status.datasources.weather.client import OPENWEATHER_FORECAST_API, WeatherOptions
from trail_status.datasources.weather.forecast import fetch_forecast, parse_forecast
from trail_status.datasources.weather.models import ForecastPoint, ForecastStats
from trail_status.datasources.weather.prediction import (
    fetch_weather_prediction,
    predict,
    select_tomorrow,
    tomorrow_window,
)
from trail_status.datasources.weather.rules import RULES, Rule, RuleOutcome, apply_rules

__all__ = [
    "OPENWEATHER_FORECAST_API",
    "RULES",
    "ForecastPoint",
    "ForecastStats",
    "Rule",
    "RuleOutcome",
    "WeatherOptions",
    "apply_rules",
    "fetch_forecast",
    "fetch_weather_prediction",
    "parse_forecast",
    "predict",
    "select_tomorrow",
    "tomorrow_window",
]

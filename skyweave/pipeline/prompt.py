"""
Turns a weather summary into an edit instruction for the image model.
Pure functions only: the same inputs always give the same text.
"""
from skyweave.integrations.weather import DEFAULT_VISIBILITY


def temperature_band(temp):
    if temp < 0:
        return 'freezing cold'
    if temp < 10:
        return 'cold'
    if temp < 20:
        return 'cool'
    if temp < 28:
        return 'warm'
    return 'hot'


def cloud_band(clouds):
    if clouds < 20:
        return 'clear skies'
    if clouds < 50:
        return 'partly cloudy skies'
    if clouds < 80:
        return 'mostly cloudy skies'
    return 'overcast skies'


def visibility_clause(visibility):
    if visibility < 1000:
        return 'with very poor visibility'
    if visibility < 5000:
        return 'with reduced visibility'
    return ''


def _amount_band(amount):
    if amount < 2.5:
        return 'light'
    if amount < 10:
        return 'moderate'
    return 'heavy'


def precipitation_clause(rain, snow):
    if rain > 0:
        return f'{_amount_band(rain)} rain'
    if snow > 0:
        return f'{_amount_band(snow)} snow'
    return ''


def wind_clause(wind_speed):
    if wind_speed > 10:
        return 'with strong winds'
    if wind_speed > 5:
        return 'with moderate winds'
    return ''


def build_prompt(weather, location_label, time_of_day=''):
    condition = weather.get('condition') or 'clear'
    description = weather.get('description') or 'clear sky'
    temp = weather.get('temp') or 0.0
    clouds = weather.get('clouds') or 0
    visibility = weather.get('visibility')
    if visibility is None:
        visibility = DEFAULT_VISIBILITY

    parts = [
        f"Transform this landscape photo to accurately depict {location_label} weather conditions. ",
        f"The scene should show {condition} ({description}) with {cloud_band(clouds)} "
        f"and a temperature of {temp:.1f}°C ({temperature_band(temp)}). ",
    ]

    time_of_day = (time_of_day or '').strip()
    if time_of_day:
        parts.append(f"Set the scene during the {time_of_day}, with lighting appropriate to that time of day. ")

    precipitation = precipitation_clause(weather.get('rain') or 0, weather.get('snow') or 0)
    if precipitation:
        parts.append(f"Add {precipitation} falling in the scene. ")

    visibility_desc = visibility_clause(visibility)
    if visibility_desc:
        parts.append(f"The atmosphere should appear {visibility_desc}. ")

    wind_desc = wind_clause(weather.get('wind_speed') or 0)
    if wind_desc:
        parts.append(f"Show signs of wind {wind_desc} such as swaying trees or grass. ")

    parts.append(
        f"The lighting should match the cloudiness level (clouds: {int(clouds)}%). "
        "Maintain the original composition and main subjects of the photo while "
        "authentically applying these weather conditions. The result should look "
        "natural and photorealistic."
    )
    return ''.join(parts)

"""
Parsers for onboarding replies

Each parser turns one free-text answer into typed values or raises
StepInputError carrying the corrective message to send back.
"""

import re
from typing import Optional

from challenge_bot.models.program import DEFAULT_ALERT_TIMES, DEFAULT_WATER_TARGET_OZ, Book, DietMode
from challenge_bot.utils.timezone_helper import resolve_timezone

LBS_PER_KG = 2.205
CM_PER_INCH = 2.54

DIET_TYPES = {
    'flexible': 'flexible',
    'high protein': 'high_protein',
    'highprotein': 'high_protein',
    'high-protein': 'high_protein',
    'keto': 'keto',
    'paleo': 'paleo',
    'carnivore': 'carnivore',
    'vegan': 'vegan',
    'vegetarian': 'vegetarian',
}

DIET_MODES = {
    '1': DietMode.CONFIRM, 'confirm': DietMode.CONFIRM, 'simple': DietMode.CONFIRM,
    '2': DietMode.TRACK, 'track': DietMode.TRACK, 'log': DietMode.TRACK, 'tracking': DietMode.TRACK,
    '3': DietMode.DEFICIT, 'deficit': DietMode.DEFICIT, 'budget': DietMode.DEFICIT,
    'calories': DietMode.DEFICIT,
}

YES_WORDS = {'yes', 'y', 'ok', 'okay', 'sure', 'use this', 'auto', 'default'}
AUTO_WORDS = {'auto', 'default'}

_CM = re.compile(r'^(\d+(?:\.\d+)?)\s*(?:cm|centimet(?:er|re)s?)$', re.IGNORECASE)
_INCHES = re.compile(r'^(\d+(?:\.\d+)?)\s*(?:in|inch|inches|")$', re.IGNORECASE)
_FEET_INCHES = re.compile(
    r"""^(\d)\s*(?:'|ft|feet|foot)\s*(?:(\d{1,2}(?:\.\d+)?)\s*(?:"|''|in|inch|inches)?)?$""",
    re.IGNORECASE,
)
_WEIGHT = re.compile(r'^(\d+(?:\.\d+)?)\s*(lbs?|pounds?|kgs?|kilos?|kilograms?)?$', re.IGNORECASE)
_NUMBER = re.compile(r'^(\d+)\s*[a-z]*$', re.IGNORECASE)
_BOOK = re.compile(r'^(.+?)(?:,\s*(\d+)\s*(?:pages?|pp|p)?)?$', re.IGNORECASE)
_TIME = re.compile(r'(\d{1,2})(?::(\d{2}))?\s*(am|pm)?', re.IGNORECASE)


class StepInputError(ValueError):
    """Reply could not be used; the message tells the user what to send instead"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _number(text: str, error: str) -> int:
    """Leading integer of a reply like "2200" or "2200 cal" """
    match = _NUMBER.match(text.strip())
    if not match:
        raise StepInputError(error)
    return int(match.group(1))


def parse_diet_type(text: str) -> str:
    cleaned = text.strip().lower()
    if not cleaned:
        raise StepInputError("Tell me your diet approach, e.g. \"keto\" or \"high protein\".")
    return DIET_TYPES.get(cleaned, cleaned)


def parse_diet_mode(text: str) -> DietMode:
    cleaned = text.strip().lower().rstrip('.')
    mode = DIET_MODES.get(cleaned) or DIET_MODES.get(cleaned.split(' ')[0] if cleaned else '')
    if mode is None:
        raise StepInputError("Please pick 1 (confirm), 2 (track) or 3 (deficit).")
    return mode


def parse_gender(text: str) -> str:
    cleaned = text.strip().lower()
    if cleaned in ('male', 'm', 'man'):
        return 'male'
    if cleaned in ('female', 'f', 'woman'):
        return 'female'
    raise StepInputError('Please say "male" or "female".')


def parse_height(text: str) -> int:
    """Height in whole inches from 5'10, 5 ft 10 in, 70 in or 178 cm"""
    cleaned = text.strip().replace('’', "'").replace('”', '"')
    error = "I didn't catch that. Please enter your height like \"5'10\" or \"178 cm\"."

    if match := _CM.match(cleaned):
        inches = round(float(match.group(1)) / CM_PER_INCH)
    elif match := _INCHES.match(cleaned):
        inches = round(float(match.group(1)))
    elif match := _FEET_INCHES.match(cleaned):
        inches = int(match.group(1)) * 12 + round(float(match.group(2) or 0))
    else:
        raise StepInputError(error)

    if not 36 <= inches <= 96:
        raise StepInputError(error)
    return inches


def parse_weight(text: str) -> int:
    """Weight in whole pounds from 185 lbs or 84 kg (bare numbers are pounds)"""
    match = _WEIGHT.match(text.strip())
    error = 'Please enter your weight like "185 lbs" or "84 kg".'
    if not match:
        raise StepInputError(error)
    value = float(match.group(1))
    unit = (match.group(2) or 'lbs').lower()
    lbs = round(value * LBS_PER_KG) if unit.startswith('k') else round(value)
    if not 50 <= lbs <= 1000:
        raise StepInputError(error)
    return lbs


def parse_age(text: str) -> int:
    age = _number(text, 'Please enter a valid age.')
    if not 0 < age < 120:
        raise StepInputError('Please enter a valid age.')
    return age


def compute_bmr(gender: Optional[str], height_inches: int, weight_lbs: int, age: int) -> int:
    """Mifflin-St Jeor basal metabolic rate"""
    weight_kg = weight_lbs / LBS_PER_KG
    height_cm = height_inches * CM_PER_INCH
    offset = 5 if gender == 'male' else -161
    return round(10 * weight_kg + 6.25 * height_cm - 5 * age + offset)


def parse_base_calories(text: str, bmr: Optional[int]) -> int:
    cleaned = text.strip().lower()
    if cleaned in YES_WORDS and bmr:
        return bmr
    error = f'Enter "yes" to use {bmr} cal, or type a different number (e.g., "2200").'
    value = _number(cleaned, error)
    if not 1000 <= value <= 5000:
        raise StepInputError(error)
    return value


def parse_calorie_target(text: str, bmr: Optional[int]) -> int:
    cleaned = text.strip().lower()
    if cleaned in AUTO_WORDS and bmr:
        return round(bmr * 1.2)
    error = 'Please enter a daily calorie target (e.g., "2200") or "auto".'
    value = _number(cleaned, error)
    if not 1000 <= value <= 6000:
        raise StepInputError(error)
    return value


def parse_protein_target(text: str, weight_lbs: Optional[int]) -> int:
    cleaned = text.strip().lower()
    if cleaned in AUTO_WORDS and weight_lbs:
        return round(weight_lbs * 1)
    error = 'Please enter a protein target in grams (e.g., "180") or "auto".'
    value = _number(cleaned, error)
    if not 0 < value < 500:
        raise StepInputError(error)
    return value


def parse_water_target(text: str) -> int:
    cleaned = text.strip().lower()
    if cleaned in ('auto', 'default', 'gallon', 'a gallon', '1 gallon'):
        return DEFAULT_WATER_TARGET_OZ
    error = 'Please enter your water target in ounces (e.g., "128").'
    value = _number(cleaned, error)
    if not 0 < value < 300:
        raise StepInputError(error)
    return value


def parse_book(text: str) -> Book:
    match = _BOOK.match(text.strip())
    if not match or not match.group(1).strip():
        raise StepInputError('Please enter a book title, e.g. "Atomic Habits, 320 pages".')
    pages = int(match.group(2)) if match.group(2) else None
    return Book(title=match.group(1).strip(), total_pages=pages or None)


def parse_plan_note(text: str, error: str) -> Optional[str]:
    """Free-text plan answer (workout type, pic time); "skip" leaves it unset"""
    cleaned = text.strip()
    if not cleaned:
        raise StepInputError(error)
    if cleaned.lower() in ("skip", "none", "-"):
        return None
    return cleaned


def parse_timezone(text: str) -> str:
    timezone = resolve_timezone(text)
    if timezone is None:
        raise StepInputError(
            'I don\'t know that timezone. Send a name like "America/Chicago", '
            'an abbreviation like "PST", share your location, or say "default".'
        )
    return timezone


def parse_alert_times(text: str) -> list[str]:
    """HH:MM list from "default" or e.g. "7pm, 8:30pm, 21:00" (sorted, no duplicates)"""
    cleaned = text.strip().lower()
    if cleaned == 'default':
        return list(DEFAULT_ALERT_TIMES)

    error = 'Please send times like "7pm, 8:30pm, 21:00" or say "default".'
    times = set()
    for hour_str, minute_str, period in _TIME.findall(cleaned):
        hour = int(hour_str)
        minute = int(minute_str or 0)
        if period:
            if not 1 <= hour <= 12:
                raise StepInputError(error)
            if period == 'pm' and hour < 12:
                hour += 12
            if period == 'am' and hour == 12:
                hour = 0
        if hour > 23 or minute > 59:
            raise StepInputError(error)
        times.add(f"{hour:02d}:{minute:02d}")

    if not times:
        raise StepInputError(error)
    return sorted(times)


def is_confirmation(text: str) -> bool:
    return text.strip().upper() == 'START'

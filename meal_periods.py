"""
meal_periods.py - Meal period normalization for scraped menus

Meal periods (closed set):
- breakfast
- lunch
- dinner
- late_night
"""


def normalize_meal_name(raw):
    """
    Map a free-text meal period label onto a meal period

    Args:
        raw: Label from the source, e.g. "Continental Breakfast"

    Returns:
        str: 'breakfast', 'lunch', 'dinner' or 'late_night'.
        Anything unrecognized is treated as 'dinner'.
    """
    name = (raw or '').lower()

    if 'breakfast' in name:
        return 'breakfast'
    if 'lunch' in name:
        return 'lunch'
    if 'dinner' in name:
        return 'dinner'
    if 'late' in name:
        return 'late_night'
    return 'dinner'


def infer_meal_from_station(station_html):
    """
    Guess the meal from a Bon Appetit station blob ("@breakfast", "late night", ...)

    Returns:
        str or None: None when the station carries no meal marker
    """
    s = (station_html or '').lower()
    if not s:
        return None

    if '@breakfast' in s:
        return 'breakfast'
    if 'late night' in s or 'late-night' in s:
        return 'late_night'
    if '@lunch' in s:
        return 'lunch'
    if '@dinner' in s:
        return 'dinner'
    return None


def get_meal_display_name(meal):
    """Convert a meal period to its display name"""
    return {
        'breakfast': 'Breakfast',
        'lunch': 'Lunch',
        'dinner': 'Dinner',
        'late_night': 'Late Night'
    }.get(meal, 'Unknown')


if __name__ == "__main__":
    for label in ("Continental Breakfast", "Resident Dinner", "Late Night Snack", "Brunch"):
        print(f"{label!r} -> {get_meal_display_name(normalize_meal_name(label))}")

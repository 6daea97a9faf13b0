from config.schema import OverlapPolicy, SchoolConfig


# Spot, der im Whiteboard vorausgewählt ist
DEFAULT_LOCATION = "Los Lances"


def default_school_config() -> SchoolConfig:
    """Komplette Default-Konfiguration der Kiteschule.

    Arbeitstag 09:00–18:00 (UTC), Raster 30 Minuten.
    Neue Events: Privat 2h, Semi-Privat 2,5h, Gruppe 3h.
    Überschneidungen werden an der Nachbargrenze gekappt.
    """
    return SchoolConfig(
        school_name="Kiteschule Los Lances",
        default_location=DEFAULT_LOCATION,
        default_event_duration=120,
        time_step_minutes=30,
        min_duration=30,
        minimum_gap_minutes=15,
        working_day_start="09:00",
        working_day_end="18:00",
        overlap_policy=OverlapPolicy.CLAMP,
        duration_cap_one=120,
        duration_cap_two=150,
        duration_cap_three=180,
    )

import os


def get_settings_module() -> str:
    # APP_ENV selects the settings module; development is the default
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "dental_clinic.settings.production"

    if env in {"test", "testing"}:
        return "dental_clinic.settings.testing"

    return "dental_clinic.settings.development"

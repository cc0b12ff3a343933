"""
Fixtures partagées.

- `config`      : réglages par défaut, sans lecture de secrets ni d'environnement.
- `clean_env`   : retire les variables PAIE_* de l'environnement (autouse).
"""

import pytest

import calc
import settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('PAIE_REST_DAYS', 'PAIE_NON_WORKING_DAY', 'PAIE_WAITING_PERIOD_DAYS',
                 'PAIE_WEEKLY_HOURS', 'PAIE_LOG_LEVEL'):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return {
        'rest_days': calc.DEFAULT_REST_DAYS,
        'non_working_day': calc.DEFAULT_NON_WORKING_DAY,
        'waiting_period_days': settings.DEFAULT_WAITING_PERIOD_DAYS,
        'weekly_hours': settings.DEFAULT_WEEKLY_HOURS,
        'log_level': 'INFO',
    }

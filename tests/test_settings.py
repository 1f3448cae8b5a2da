import pytest


def test_database_timeout_option_matches_engine(settings):
    database = settings.DATABASES['default']
    if database['ENGINE'] == 'django.db.backends.sqlite3':
        # lock wait, sqlite has no connect step
        assert database['OPTIONS'] == {'timeout': settings.DB_CONNECT_TIMEOUT_SECONDS}
    elif database['ENGINE'] == 'django.db.backends.postgresql':
        assert database['OPTIONS'] == {'connect_timeout': settings.DB_CONNECT_TIMEOUT_SECONDS}
    else:
        pytest.fail(f"unexpected engine {database['ENGINE']}")
    assert database['CONN_HEALTH_CHECKS'] is True

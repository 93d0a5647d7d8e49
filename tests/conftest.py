pytest_plugins = [
    "tests.fixtures.db_client",
    "tests.fixtures.http_fixtures",
    "tests.fixtures.services_fixtures",
]

import mongomock
import pytest

from snack_query import MongoDataStore, MongoQueryTranslator

DATABASE = "snack-track"


@pytest.fixture
def client():
    return mongomock.MongoClient()


@pytest.fixture
def store(client):
    return MongoDataStore(client, DATABASE)


@pytest.fixture
def strict_store(client):
    return MongoDataStore(client, DATABASE, translator=MongoQueryTranslator(strict=True))


@pytest.fixture
def translator():
    return MongoQueryTranslator()


@pytest.fixture
def strict_translator():
    return MongoQueryTranslator(strict=True)

import pytest

from fakes import API_BASE, CLIMATE_BASE
from wb_connector.application.urls import WorldBankUrls


@pytest.fixture
def urls():
    return WorldBankUrls(API_BASE, CLIMATE_BASE)

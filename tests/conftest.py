"""
Pytest fixtures for the sales dashboard tests.

Provides a small hand-checked CSV sample and the parsed records/contexts built
from it.
"""

import pytest

from sales_core.data import build_data_context, parse_sales_csv

SAMPLE_CSV = """Date,DayOfWeek,StoreID,StoreLocation,ProductCategory,UnitsSold,TotalSales_INR,Profit_INR
10-08-2023,Thursday,3,Andheri,Smartphones,10,100000,15000
12-08-2023,Saturday,1,Bandra,Laptops,4,200000,24000
13-08-2023,Sunday,3,Andheri,Audio,20,40000,12000
15-07-2023,Saturday,2,Colaba,Accessories,50,20000,8000
01-09-2023,Friday,1,Bandra,Smartphones,5,50000,7500
"""


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def records(sample_csv):
    return parse_sales_csv(sample_csv)


@pytest.fixture
def data_ctx(sample_csv):
    return build_data_context(sample_csv, name="sample.csv")


@pytest.fixture
def client(monkeypatch, data_ctx):
    from fastapi.testclient import TestClient

    import api.main

    monkeypatch.setattr(api.main, "load_dashboard_data", lambda: data_ctx)
    return TestClient(api.main.app)

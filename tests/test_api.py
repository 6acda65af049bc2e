def test_meta_options(client):
    resp = client.get("/meta/options")
    assert resp.status_code == 200
    body = resp.json()
    assert body["stores"] == ["Andheri", "Bandra", "Colaba"]
    assert body["months"] == ["August", "July", "September"]


def test_meta_profile(client):
    body = client.get("/meta/profile").json()
    assert body["records"] == 5
    assert body["valid_share"] == 1.0


def test_overview_defaults(client):
    resp = client.post("/overview", json={})
    assert resp.status_code == 200
    body = resp.json()
    assert body["filtered_kpis"]["total_revenue"] == 410000
    assert body["filters"]["profit_range"] == [0.0, 100.0]


def test_overview_filtered(client):
    body = client.post("/overview", json={"store": "Andheri", "profit_range": [20, 100]}).json()
    assert body["filtered_kpis"]["total_revenue"] == 40000
    assert body["filtered_kpis"]["top_category"] == "Audio"


def test_performance_view(client):
    body = client.post("/performance?view=category", json={}).json()
    assert body["top"] == "Laptops"
    assert client.post("/performance?view=region", json={}).status_code == 422


def test_trends_and_profitability(client):
    assert client.post("/trends", json={}).json()["peak_day"]["date"] == "12-08-2023"
    assert client.post("/profitability", json={}).json()["excluded_points"] == 0


def test_simulate_echoes_session(client):
    payload = {"filters": {}, "budget": 500000, "session": {"best_roi": 99.0, "best_budget": 50000}}
    body = client.post("/simulate", json=payload).json()
    assert body["session"]["improved"] is False
    assert body["session"]["best_roi"] == 99.0
    assert body["session"]["best_move"] == "₹50,000 budget strategy"
    assert body["badge"] == "Needs Optimization"


def test_insights(client):
    body = client.post("/insights", json={"category": "Smartphones"}).json()
    assert len(body["insights"]) == 3
    assert body["filters"]["category"] == "Smartphones"


def test_export_csv(client, sample_csv):
    resp = client.get("/export/csv")
    assert resp.status_code == 200
    assert resp.text == sample_csv
    assert "mumbai_electronics_sales.csv" in resp.headers["content-disposition"]


def test_nan_values_are_serialized_as_null(client, monkeypatch, sample_csv):
    import api.main
    from sales_core.data import build_data_context

    ctx = build_data_context(sample_csv + "16-07-2023,Sunday,2,Colaba,Audio,0,0,0\n")
    monkeypatch.setattr(api.main, "load_dashboard_data", lambda: ctx)
    body = client.post("/profitability", json={}).json()
    assert body["excluded_points"] == 1
    audio = next(r for r in body["category_margins"] if r["category"] == "Audio")
    assert audio["profit_margin"] == 30.0

import json

from elasticsearch import exceptions as es_exceptions


def _hits(*ids):
    return {"hits": {"total": {"value": len(ids)}, "hits": [{"_id": str(i)} for i in ids]}}


class TestHealth:
    def test_healthz(self, client, es):
        es.ping.return_value = True

        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.get_json() == {"database": True, "search_index": {"enabled": True, "available": True}}


class TestSearchEndpoints:
    def test_search(self, client, es, make_product):
        product = make_product("Phone X", price=250, categories=["Electronics"])
        es.search.return_value = {
            **_hits(product.id),
            "aggregations": {
                "categories": {"category_names": {"buckets": [{"key": "Electronics", "doc_count": 1}]}}
            },
        }

        response = client.post(
            "/products/search",
            json={"query": "phone", "min_price": 100, "max_price": 500, "page": 1, "size": 10},
        )

        assert response.status_code == 200
        payload = response.get_json()
        assert payload["total_hits"] == 1
        assert payload["data"][0]["name"] == "Phone X"
        assert payload["facets"]["categories"] == [{"key": "Electronics", "doc_count": 1}]
        assert es.search.call_count == 1
        body = es.search.call_args.kwargs["body"]
        assert body["from"] == 0
        assert body["size"] == 10
        inner = body["query"]["function_score"]["query"]["bool"]
        assert inner["must"] == [{"multi_match": {"query": "phone", "fields": ["name", "description"]}}]
        assert inner["filter"] == [{"range": {"price": {"gte": 100, "lte": 500}}}]

    def test_search_rejects_bad_payload(self, client, es):
        assert client.post("/products/search", json={"min_price": "cheap"}).status_code == 400
        assert client.post("/products/search", json={"page": 0}).status_code == 400
        es.search.assert_not_called()

    def test_search_rejects_wrongly_typed_payload(self, client, es):
        assert client.post("/products/search", json={"query": 123}).status_code == 400
        assert client.post("/products/search", json=["phone"]).status_code == 400
        assert client.post("/products/search", json={"category": ["Home"]}).status_code == 400
        es.search.assert_not_called()

    def test_search_rejects_bad_paging_and_sorting(self, client, es):
        assert client.post("/products/search", json={"page": "abc"}).status_code == 400
        assert client.post("/products/search", json={"size": "ten"}).status_code == 400
        assert client.post("/products/search", json={"sort_by": "description"}).status_code == 400
        assert client.post("/products/search", json={"sort_order": "sideways"}).status_code == 400
        es.search.assert_not_called()

    def test_search_survives_backend_outage(self, client, es):
        es.search.side_effect = es_exceptions.ConnectionError("down")

        response = client.post("/products/search", json={"query": "phone"})

        assert response.status_code == 200
        assert response.get_json() == {"data": [], "total_hits": 0, "facets": {}}

    def test_similar_for_unknown_product(self, client):
        response = client.get("/products/12345/similar")

        assert response.status_code == 404
        assert "12345" in response.get_json()["error"]

    def test_autocomplete(self, client, es, redis_store):
        es.search.return_value = {"suggest": {"name_suggest": [{"options": [{"text": "Phone X"}]}]}}

        response = client.get("/products/autocomplete?query=pho&strategy=prefix")

        assert response.get_json() == ["Phone X"]
        assert json.loads(redis_store.store["product:suggestions:pho"]) == ["Phone X"]

    def test_autocomplete_unknown_strategy(self, client):
        assert client.get("/products/autocomplete?query=pho&strategy=magic").status_code == 400


class TestRecommendations:
    def test_requires_login(self, client):
        assert client.get("/products/recommendations").status_code == 401

    def test_unsupported_type_is_empty(self, client, login_admin, es):
        login_admin()

        response = client.get("/products/recommendations?user_activity=SHARE")

        assert response.status_code == 200
        assert response.get_json()["total_hits"] == 0
        es.search.assert_not_called()


class TestProductDetail:
    def test_missing_product(self, client):
        assert client.get("/products/999").status_code == 404

    def test_anonymous_view_is_not_tracked(self, client, es, make_product):
        product = make_product("Desk Lamp")

        assert client.get(f"/products/{product.id}").get_json()["name"] == "Desk Lamp"
        es.update.assert_not_called()

    def test_logged_in_view_is_tracked(self, client, es, make_product, login_admin):
        product = make_product("Desk Lamp")
        login_admin()

        client.get(f"/products/{product.id}")

        es.update.assert_called_once_with(index="products", id=str(product.id), doc={"view_count": 1})

    def test_owner_view_is_not_tracked(self, client, es, make_product, login_admin, admin_user):
        product = make_product("Desk Lamp", user_id=admin_user.id)
        login_admin()

        client.get(f"/products/{product.id}")

        es.update.assert_not_called()

    def test_purchase(self, client, es, make_product, login_admin):
        product = make_product("Desk Lamp")
        login_admin()

        response = client.post(f"/products/{product.id}/purchase")

        assert response.status_code == 202
        es.update.assert_called_once_with(index="products", id=str(product.id), doc={"purchase_count": 1})


class TestProductWrites:
    def test_create_indexes_product(self, client, es, login_admin):
        login_admin()

        response = client.post(
            "/products",
            json={"name": "Trail Shoe", "price": 89.9, "stock_quantity": 4, "category_ids": [4]},
        )

        assert response.status_code == 201
        created = response.get_json()
        assert created["categories"] == [{"id": 4, "name": "Sports"}]
        assert es.index.call_args.kwargs["id"] == str(created["id"])
        assert es.index.call_args.kwargs["document"]["categories"] == [{"category_id": 4, "name": "Sports"}]

    def test_create_validates_payload(self, client, es, login_admin):
        login_admin()

        assert client.post("/products", json={"name": "", "price": 1, "stock_quantity": 1}).status_code == 400
        assert client.post("/products", json={"name": "A", "price": -1, "stock_quantity": 1}).status_code == 400
        es.index.assert_not_called()

    def test_create_with_unknown_category(self, client, login_admin):
        login_admin()

        response = client.post("/products", json={"name": "A", "price": 1, "stock_quantity": 1, "category_ids": [77]})

        assert response.status_code == 404

    def test_create_requires_login(self, client):
        assert client.post("/products", json={"name": "A", "price": 1, "stock_quantity": 1}).status_code == 401

    def test_update_evicts_cached_response(self, client, es, make_product, login_admin, redis_store):
        product = make_product("Desk Lamp")
        login_admin()
        client.get(f"/products/{product.id}")
        assert f"products:{product.id}" in redis_store.store

        response = client.put(
            f"/products/{product.id}",
            json={"name": "Floor Lamp", "price": 40, "stock_quantity": 2},
        )

        assert response.get_json()["name"] == "Floor Lamp"
        assert f"products:{product.id}" not in redis_store.store
        assert es.index.call_args.kwargs["document"]["name"] == "Floor Lamp"

    def test_delete(self, client, es, make_product, login_admin):
        product = make_product("Desk Lamp")
        login_admin()

        assert client.delete(f"/products/{product.id}").status_code == 204
        es.delete.assert_called_once_with(index="products", id=str(product.id))
        assert client.get(f"/products/{product.id}").status_code == 404


class TestAdminReindex:
    def test_requires_login(self, client):
        assert client.post("/admin/reindex/products").status_code == 401

    def test_launches_reindex(self, client, login_admin, monkeypatch):
        launched = []
        monkeypatch.setattr("app.blueprints.admin.launch_full_reindex", lambda app: launched.append(app) or True)
        login_admin()

        response = client.post("/admin/reindex/products")

        assert response.status_code == 202
        assert len(launched) == 1

    def test_disabled_index(self, app, client, login_admin):
        app.config["ELASTICSEARCH_ENABLED"] = False
        login_admin()

        assert client.post("/admin/reindex/products").status_code == 503


class TestAuth:
    def test_bad_credentials(self, client):
        response = client.post("/auth/login", json={"username": "admin", "password": "nope"})

        assert response.status_code == 401

    def test_logout(self, client, login_admin):
        login_admin()

        assert client.post("/auth/logout").status_code == 204
        assert client.get("/products/recommendations").status_code == 401

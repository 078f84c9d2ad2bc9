from datetime import datetime, timedelta

import pytest
from elasticsearch import exceptions as es_exceptions

from app.services.product_service import ProductNotFound
from app.services.search_models import SearchRequest
from app.services.search_service import ProductSearchService
from models import UserActivity


def _hits(*ids):
    return {"hits": {"total": {"value": len(ids)}, "hits": [{"_id": str(i)} for i in ids]}}


def _add_activity(session, user_id, product_id, activity_type, days_ago=0):
    session.add(
        UserActivity(
            user_id=user_id,
            product_id=product_id,
            activity_type=activity_type,
            created_at=datetime.utcnow() - timedelta(days=days_ago),
        )
    )


@pytest.fixture
def service(app_ctx, db_session):
    return ProductSearchService(db_session, app_ctx)


class TestSearch:
    def test_search_resolves_hits_from_store(self, service, es, make_product):
        first = make_product("Phone X", categories=["Electronics"])
        second = make_product("Phone Case")
        es.search.return_value = _hits(second.id, first.id)

        result = service.search(SearchRequest(query="phone"))

        assert [item["name"] for item in result.data] == ["Phone Case", "Phone X"]
        assert result.data[1]["categories"][0]["name"] == "Electronics"
        assert es.search.call_args.kwargs["index"] == "products"

    def test_backend_failure_degrades_to_empty(self, service, es, app_ctx):
        es.search.side_effect = es_exceptions.ConnectionError("down")

        result = service.search(SearchRequest(query="phone"))

        assert result.data == []
        assert result.total_hits == 0
        assert app_ctx.config["ELASTICSEARCH_AVAILABLE"] is False

    def test_disabled_index_returns_empty_without_calls(self, service, es, app_ctx):
        app_ctx.config["ELASTICSEARCH_ENABLED"] = False

        assert service.search(SearchRequest(query="phone")).total_hits == 0
        es.search.assert_not_called()


class TestSimilarProducts:
    def test_unknown_product_is_not_found(self, service, es):
        with pytest.raises(ProductNotFound):
            service.similar_products(999)
        es.search.assert_not_called()

    def test_similar_uses_product_categories(self, service, es, make_product):
        product = make_product("Desk Lamp", categories=["Home"])
        es.search.return_value = _hits()

        service.similar_products(product.id)

        body = es.search.call_args.kwargs["body"]
        should = body["query"]["function_score"]["query"]["bool"]["should"]
        assert should[0]["nested"]["query"]["terms"] == {"categories.name.keyword": ["Home"]}


class TestUserRecommendation:
    def test_unsupported_activity_type_is_empty(self, service, es):
        result = service.user_recommendation(1, "WISHLIST")

        assert result.total_hits == 0
        assert result.data == []
        es.search.assert_not_called()

    def test_no_recent_activity_is_empty(self, service, es, db_session, admin_user):
        _add_activity(db_session, admin_user.id, 5, "VIEW", days_ago=45)
        db_session.commit()

        assert service.user_recommendation(admin_user.id, "VIEW").data == []
        es.search.assert_not_called()

    def test_seeds_with_most_frequent_products(self, service, es, db_session, admin_user):
        for product_id, times in [(11, 1), (12, 3), (13, 2)]:
            for _ in range(times):
                _add_activity(db_session, admin_user.id, product_id, "PURCHASE")
        _add_activity(db_session, admin_user.id, 99, "VIEW")
        db_session.commit()
        es.search.return_value = _hits()

        service.user_recommendation(admin_user.id, "purchase")

        scoring = es.search.call_args.kwargs["body"]["query"]["function_score"]
        liked = [like["_id"] for like in scoring["query"]["more_like_this"]["like"]]
        assert liked == ["12", "13", "11"]
        assert [f["field_value_factor"]["field"] for f in scoring["functions"]] == ["purchase_count"]

    def test_seed_list_is_capped(self, service, es, db_session, admin_user):
        for product_id in range(1, 9):
            _add_activity(db_session, admin_user.id, product_id, "VIEW")
        db_session.commit()
        es.search.return_value = _hits()

        service.user_recommendation(admin_user.id, "VIEW")

        body = es.search.call_args.kwargs["body"]
        assert len(body["query"]["function_score"]["query"]["more_like_this"]["like"]) == 5
        assert body["size"] == 10


class TestAutocomplete:
    def test_blank_query_returns_nothing(self, service, es):
        assert service.autocomplete("   ") == []
        assert service.ngram_autocomplete(None) == []
        es.search.assert_not_called()

    def test_prefix_capped_at_three(self, service, es):
        es.search.return_value = {
            "suggest": {
                "name_suggest": [
                    {"options": [{"text": name} for name in ["A1", "A2", "A3", "A4"]]}
                ]
            }
        }

        assert service.autocomplete("a") == ["A1", "A2", "A3"]

    def test_transient_failure_returns_empty_list(self, service, es):
        es.search.side_effect = es_exceptions.ConnectionTimeout("slow")

        assert service.fuzzy_autocomplete("phnoe") == []

    def test_combined_cascades_and_dedupes(self, service, es):
        es.search.side_effect = [
            {"suggest": {"name_suggest": [{"options": [{"text": "Phone A"}, {"text": "Phone B"}]}]}},
            {"hits": {"hits": [{"_source": {"name": n}} for n in ["Phone B", "Phone C", "Phone D"]]}},
        ]

        suggestions = service.combined_autocomplete("pho")

        assert suggestions == ["Phone A", "Phone B", "Phone C", "Phone D"]
        assert es.search.call_count == 2

    def test_combined_falls_through_to_fuzzy_and_caps_at_five(self, service, es):
        es.search.side_effect = [
            {"suggest": {"name_suggest": [{"options": [{"text": "Lamp"}]}]}},
            {"hits": {"hits": [{"_source": {"name": "Lamp"}}]}},
            {"hits": {"hits": [{"_source": {"name": n}} for n in ["Lamb", "Lamps", "Clamp"]]}},
        ]

        suggestions = service.combined_autocomplete("lamp")

        assert suggestions == ["Lamp", "Lamb", "Lamps", "Clamp"]
        assert len(suggestions) == len(set(suggestions)) <= 5
        assert es.search.call_count == 3

    def test_prefix_transient_failure_returns_empty_list(self, service, es):
        es.search.side_effect = es_exceptions.ConnectionError("down")

        assert service.autocomplete("sho") == []
        assert es.search.call_count == 1

    def test_combined_survives_every_strategy_failing(self, service, es):
        es.search.side_effect = es_exceptions.ConnectionTimeout("slow")

        assert service.combined_autocomplete("sho") == []
        assert es.search.call_count == 3


class TestUnconfiguredIndex:
    @pytest.fixture
    def unconfigured(self, app_ctx, db_session):
        app_ctx.extensions.pop("elasticsearch")
        app_ctx.config["ELASTICSEARCH_URL"] = ""
        return ProductSearchService(db_session, app_ctx)

    def test_read_paths_degrade_without_a_client(self, unconfigured):
        assert unconfigured.autocomplete("sho") == []
        assert unconfigured.combined_autocomplete("sho") == []
        assert unconfigured.search(SearchRequest(query="shoe")).total_hits == 0
        assert unconfigured.user_recommendation(1, "VIEW").data == []

    def test_index_reports_disabled(self, unconfigured):
        assert unconfigured.index.is_enabled() is False
        assert unconfigured.index.client() is None

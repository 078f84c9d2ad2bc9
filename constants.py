PRODUCT_INDEX = "products"

ACTIVITY_VIEW = "VIEW"
ACTIVITY_PURCHASE = "PURCHASE"

# index field carrying the counter for each activity type, with its ranking weight
ACTIVITY_SIGNALS = {
    ACTIVITY_VIEW: ("view_count", 1.0),
    ACTIVITY_PURCHASE: ("purchase_count", 2.0),
}

CATEGORY_FACET = "categories"
CATEGORY_NAMES_AGG = "category_names"
NAME_SUGGESTER = "name_suggest"
NGRAM_ANALYZER = "ngram_analyzer"

PRODUCT_CACHE_PREFIX = "products:"
SUGGESTION_CACHE_PREFIXES = {
    "prefix": "product:suggestions:",
    "ngram": "product:ngram:suggestions:",
    "fuzzy": "product:fuzzy:suggestions:",
    "combined": "product:combined:suggestions:",
}

DEFAULT_SORT_FIELD = "_score"
DEFAULT_SORT_ORDER = "desc"
DEFAULT_PAGE_SIZE = 10
SORTABLE_FIELDS = (
    "_score",
    "price",
    "name.keyword",
    "stock_quantity",
    "weight",
    "view_count",
    "purchase_count",
)
SORT_ORDERS = ("asc", "desc")

CONFIG_DEFAULTS = {
    "ELASTICSEARCH_ENABLED": True,
    "ELASTICSEARCH_URL": "http://localhost:9200",
    "ELASTICSEARCH_TIMEOUT": 5,
    "ELASTICSEARCH_VERIFY_CERTS": False,
    "ELASTICSEARCH_USERNAME": None,
    "ELASTICSEARCH_PASSWORD": None,
    "ELASTICSEARCH_AUTO_INDEX": True,
    "ELASTICSEARCH_FORCE_REINDEX": False,
    "INDEX_RETRY_MAX_ATTEMPTS": 3,
    "INDEX_RETRY_WAIT_SECONDS": 5.0,
    "REINDEX_BATCH_SIZE": 100,
    "SIMILAR_PRODUCT_LIMIT": 10,
    "RECOMMENDATION_LIMIT": 10,
    "RECOMMENDATION_SEED_LIMIT": 5,
    "RECOMMENDATION_WINDOW_DAYS": 30,
    "AUTOCOMPLETE_STRATEGY_LIMIT": 3,
    "AUTOCOMPLETE_COMBINED_LIMIT": 5,
    "SUGGESTION_CACHE_TTL": 600,
    "PRODUCT_CACHE_TTL": 3600,
    "CACHE_ENABLED": True,
    "REDIS_URL": "redis://localhost:6379/0",
    "INDEX_TASK_WORKERS": 4,
    "INDEX_TASKS_EAGER": False,
    "LOG_LEVEL": "INFO",
}

from __future__ import annotations

from typing import Iterable

from elasticsearch import Elasticsearch, helpers
from elasticsearch import exceptions as es_exceptions
from flask import current_app

from app.services.search_documents import index_settings
from constants import PRODUCT_INDEX

# connection-level failures worth another attempt
TRANSIENT_ERRORS = (es_exceptions.ConnectionError, es_exceptions.ConnectionTimeout)
SEARCH_ERRORS = (es_exceptions.ApiError, es_exceptions.TransportError)


class ProductSearchIndex:
    def __init__(self, app=None):
        self.app = app or current_app

    def is_enabled(self) -> bool:
        """Enabled by config and backed by a client or a URL to build one from."""
        if not self.app.config.get("ELASTICSEARCH_ENABLED", False):
            return False
        if self.app.extensions.get("elasticsearch") is not None:
            return True
        return bool(self.app.config.get("ELASTICSEARCH_URL"))

    def index_name(self) -> str:
        return PRODUCT_INDEX

    def client(self):
        if not self.is_enabled():
            return None
        client = self.app.extensions.get("elasticsearch")
        if client is not None:
            return client
        url = self.app.config.get("ELASTICSEARCH_URL")
        if not url:
            return None
        kwargs = {
            "request_timeout": self.app.config.get("ELASTICSEARCH_TIMEOUT", 5),
            "verify_certs": bool(self.app.config.get("ELASTICSEARCH_VERIFY_CERTS", False)),
        }
        username = self.app.config.get("ELASTICSEARCH_USERNAME")
        password = self.app.config.get("ELASTICSEARCH_PASSWORD")
        if username and password:
            kwargs["basic_auth"] = (username, password)
        client = Elasticsearch(url, **kwargs)
        self.app.extensions["elasticsearch"] = client
        return client

    def _mark(self, available: bool):
        self.app.config["ELASTICSEARCH_AVAILABLE"] = available

    def ping(self) -> bool:
        client = self.client()
        if client is None:
            return False
        try:
            ok = bool(client.ping())
        except SEARCH_ERRORS:
            ok = False
        self._mark(ok)
        return ok

    def ensure_index(self) -> bool:
        client = self.client()
        if client is None:
            return False
        index = self.index_name()
        try:
            if not client.indices.exists(index=index):
                client.indices.create(index=index, **index_settings())
                self.app.logger.info("Created search index %s", index)
            self._mark(True)
            return True
        except SEARCH_ERRORS as exc:
            self.app.logger.warning("Elasticsearch index setup failed: %s", exc)
            self._mark(False)
            return False

    def rebuild_index(self) -> bool:
        client = self.client()
        if client is None:
            return False
        index = self.index_name()
        try:
            if client.indices.exists(index=index):
                client.indices.delete(index=index)
            client.indices.create(index=index, **index_settings())
            self._mark(True)
            return True
        except SEARCH_ERRORS as exc:
            self.app.logger.warning("Elasticsearch rebuild failed: %s", exc)
            self._mark(False)
            return False

    def count_documents(self) -> int | None:
        client = self.client()
        if client is None:
            return None
        try:
            response = client.count(index=self.index_name())
            self._mark(True)
            return int(response.get("count", 0))
        except SEARCH_ERRORS as exc:
            self.app.logger.warning("Elasticsearch count failed: %s", exc)
            self._mark(False)
            return None

    # The write and search calls below raise; callers own retry and fallback.

    def index_document(self, doc_id: str, document: dict):
        return self.client().index(index=self.index_name(), id=doc_id, document=document)

    def delete_document(self, doc_id: str) -> bool:
        try:
            self.client().delete(index=self.index_name(), id=doc_id)
        except es_exceptions.NotFoundError:
            return False
        return True

    def update_document(self, doc_id: str, fields: dict):
        return self.client().update(index=self.index_name(), id=doc_id, doc=fields)

    def bulk_upsert(self, documents: Iterable[dict]) -> tuple[int, list]:
        documents = list(documents)
        if not documents:
            return 0, []
        index = self.index_name()
        actions = (
            {
                "_op_type": "update",
                "_index": index,
                "_id": document["id"],
                "doc": document,
                "doc_as_upsert": True,
            }
            for document in documents
        )
        success, errors = helpers.bulk(
            self.client(),
            actions,
            chunk_size=len(documents),
            raise_on_error=False,
        )
        return success or 0, errors or []

    def search(self, body: dict):
        response = self.client().search(index=self.index_name(), body=body)
        self._mark(True)
        return response

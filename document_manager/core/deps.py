from functools import lru_cache

from fastapi import Depends, Request
from opensearchpy import OpenSearch

from document_manager.core.config import settings
from document_manager.services.document_service import DocumentService
from document_manager.services.entity_service import DEFAULT_USER, EntityService
from document_manager.services.universal_query import QueryCompiler, QueryCompilerConfig
from document_manager.services.validation import ValidationEngine, ValidationOptions

USER_HEADERS = ("x-proxy-user", "x-user")


@lru_cache
def get_search_client() -> OpenSearch:
    return OpenSearch(
        hosts=[settings.OPENSEARCH_URL],
        http_auth=settings.opensearch_http_auth,
        verify_certs=settings.OPENSEARCH_VERIFY_CERTS,
        ssl_show_warn=False,
        timeout=settings.OPENSEARCH_TIMEOUT_SECONDS,
    )

def get_validation_engine() -> ValidationEngine:
    return ValidationEngine(
        ValidationOptions(
            max_page_size=settings.MAX_PAGE_SIZE,
            default_page_size=settings.DEFAULT_PAGE_SIZE,
            max_filters=settings.MAX_FILTERS,
            max_sort_fields=settings.MAX_SORT_FIELDS,
            max_bulk_size=settings.MAX_BULK_SIZE,
        )
    )

def get_query_compiler() -> QueryCompiler:
    return QueryCompiler(QueryCompilerConfig(keyword_fields=settings.keyword_fields_map))

def get_entity_service(
    client: OpenSearch = Depends(get_search_client),
    compiler: QueryCompiler = Depends(get_query_compiler),
) -> EntityService:
    return EntityService(client, settings.ENTITY_INDEX, compiler, refresh=settings.OPENSEARCH_REFRESH)

def get_document_service(client: OpenSearch = Depends(get_search_client)) -> DocumentService:
    return DocumentService(client)

def get_request_user(request: Request) -> str:
    # Attribution only; authentication is the host's job.
    for header in USER_HEADERS:
        value = str(request.headers.get(header) or "").strip()
        if value:
            return value
    return DEFAULT_USER

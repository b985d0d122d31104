"""FastAPI application exposing the File Search proxy routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse
from google import genai

from filesearch.api.schemas import (
    ChunkingPresetListResponse,
    ChunkingPresetModel,
    CreateStoreRequest,
    DocumentListResponse,
    DocumentModel,
    GeminiModelModel,
    ModelListResponse,
    OperationModel,
    OperationResponse,
    QueryRequest,
    QueryResponse,
    StoreListResponse,
    StoreModel,
    StoreResponse,
    SuccessResponse,
    UploadResponse,
)
from filesearch.client import FileSearchClient
from filesearch.config import FileSearchConfig, load_config
from filesearch.constants import CHUNKING_PRESETS, GEMINI_MODELS
from filesearch.exceptions import FileSearchError, RemoteError, ValidationError
from filesearch.models import Document, Operation
from filesearch.search.client import FileSearchQueryClient
from filesearch.upload.orchestrator import UploadOrchestrator
from filesearch.upload.poller import OperationPoller

logger = logging.getLogger(__name__)

API_PREFIX = "/api/file-search"


@dataclass(frozen=True)
class AppDependencies:
    client: FileSearchClient
    orchestrator: UploadOrchestrator
    query_client: FileSearchQueryClient
    config: FileSearchConfig


def build_dependencies(config: FileSearchConfig) -> AppDependencies:
    if not config.api_key:
        raise RuntimeError(
            "Gemini API key not found.\n"
            "Set it with: filesearch config set-api-key YOUR_KEY\n"
            "Or: export GEMINI_API_KEY=your-key"
        )
    genai_client = genai.Client(api_key=config.api_key)
    client = FileSearchClient(genai_client)
    poller = OperationPoller(
        client,
        interval=config.poll_interval_seconds,
        max_attempts=config.poll_max_attempts,
        timeout=config.poll_timeout_seconds,
    )
    return AppDependencies(
        client=client,
        orchestrator=UploadOrchestrator(
            client, poller=poller, default_chunking=config.default_chunking
        ),
        query_client=FileSearchQueryClient(genai_client, default_model=config.default_model),
        config=config,
    )


def _document_model(doc: Document) -> DocumentModel:
    return DocumentModel(
        name=doc.name,
        display_name=doc.display_name,
        state=doc.state.value,
        size_bytes=doc.size_bytes,
        mime_type=doc.mime_type,
        create_time=doc.create_time,
        update_time=doc.update_time,
        custom_metadata=doc.custom_metadata,
    )


def _operation_model(op: Operation) -> OperationModel:
    return OperationModel(
        name=op.name,
        done=op.done,
        error={**(op.error_detail or {}), "message": op.error} if op.error else None,
        response=op.response,
    )


def create_app(
    *,
    config: FileSearchConfig | None = None,
    dependencies: AppDependencies | None = None,
) -> FastAPI:
    config = config or (dependencies.config if dependencies else load_config())
    deps = dependencies or build_dependencies(config)

    app = FastAPI(title="File Search API", version="0.1.0")
    app.state.dependencies = deps

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(RemoteError)
    async def handle_remote_error(request: Request, exc: RemoteError) -> JSONResponse:
        logger.error(
            "%s %s failed: %s (status=%s body=%s)",
            request.method,
            request.url.path,
            exc,
            exc.status_code,
            exc.body,
        )
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"error": str(exc)})

    @app.exception_handler(FileSearchError)
    async def handle_file_search_error(request: Request, exc: FileSearchError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)}
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    @app.get(f"{API_PREFIX}/stores", response_model=StoreListResponse)
    async def list_stores(deps: AppDependencies = Depends(get_dependencies)) -> StoreListResponse:
        stores = await deps.client.list_stores(deps.config.page_size)
        return StoreListResponse(stores=[StoreModel.model_validate(s) for s in stores])

    @app.post(f"{API_PREFIX}/stores", response_model=StoreResponse)
    async def create_store(
        payload: CreateStoreRequest,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> StoreResponse:
        store = await deps.client.create_store(payload.display_name)
        return StoreResponse(store=StoreModel.model_validate(store))

    @app.get(f"{API_PREFIX}/stores/{{store_name:path}}", response_model=StoreResponse)
    async def get_store(
        store_name: str,
        deps: AppDependencies = Depends(get_dependencies),
    ):
        store = await deps.client.get_store(store_name)
        if store is None:
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND, content={"error": "Store not found"}
            )
        return StoreResponse(store=StoreModel.model_validate(store))

    @app.delete(f"{API_PREFIX}/stores/{{store_name:path}}", response_model=SuccessResponse)
    async def delete_store(
        store_name: str,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> SuccessResponse:
        await deps.client.delete_store(store_name)
        return SuccessResponse()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    @app.get(f"{API_PREFIX}/documents", response_model=DocumentListResponse)
    async def list_documents(
        store: Optional[str] = Query(default=None),
        deps: AppDependencies = Depends(get_dependencies),
    ) -> DocumentListResponse:
        if not store:
            raise ValidationError("store parameter is required")
        documents = await deps.client.list_documents(store, deps.config.page_size)
        return DocumentListResponse(documents=[_document_model(d) for d in documents])

    @app.post(f"{API_PREFIX}/documents", response_model=UploadResponse)
    async def upload_document(
        file: Optional[UploadFile] = File(default=None),
        store_name: Optional[str] = Form(default=None, alias="storeName"),
        display_name: Optional[str] = Form(default=None, alias="displayName"),
        custom_metadata: Optional[str] = Form(default=None, alias="customMetadata"),
        chunking: Optional[str] = Form(default=None),
        deps: AppDependencies = Depends(get_dependencies),
    ) -> UploadResponse:
        if file is None or not store_name:
            raise ValidationError("file and storeName are required")
        data = await file.read()
        result = await deps.orchestrator.upload_document(
            store_name,
            data,
            display_name or file.filename or "upload",
            mime_type=file.content_type or None,
            custom_metadata=custom_metadata,
            chunking=chunking or None,
        )
        return UploadResponse(operation_name=result.operation_name, file_name=result.file_name)

    @app.delete(f"{API_PREFIX}/documents/{{document_name:path}}", response_model=SuccessResponse)
    async def delete_document(
        document_name: str,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> SuccessResponse:
        await deps.client.delete_document(document_name)
        return SuccessResponse()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @app.get(f"{API_PREFIX}/operations/{{operation_name:path}}", response_model=OperationResponse)
    async def get_operation(
        operation_name: str,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> OperationResponse:
        op = await deps.client.get_operation_status(operation_name)
        return OperationResponse(operation=_operation_model(op))

    # ------------------------------------------------------------------
    # Query and catalogue
    # ------------------------------------------------------------------

    @app.post(f"{API_PREFIX}/query", response_model=QueryResponse)
    async def query(
        payload: QueryRequest,
        deps: AppDependencies = Depends(get_dependencies),
    ) -> QueryResponse:
        result = await deps.query_client.query(
            payload.store_names,
            payload.message,
            model=payload.model,
            metadata_filter=payload.metadata_filter,
        )
        return QueryResponse.model_validate(result)

    @app.get(f"{API_PREFIX}/models", response_model=ModelListResponse)
    async def list_models(deps: AppDependencies = Depends(get_dependencies)) -> ModelListResponse:
        return ModelListResponse(
            models=[GeminiModelModel.model_validate(m) for m in GEMINI_MODELS],
            default_model=deps.config.default_model,
        )

    @app.get(f"{API_PREFIX}/chunking-presets", response_model=ChunkingPresetListResponse)
    async def list_chunking_presets() -> ChunkingPresetListResponse:
        return ChunkingPresetListResponse(
            presets=[ChunkingPresetModel.model_validate(p) for p in CHUNKING_PRESETS.values()]
        )

    return app

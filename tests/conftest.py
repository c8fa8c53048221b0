"""
Pytest fixtures and configuration for unit tests.
"""

import copy
from typing import Any, Callable, Dict, List

import httpx
import pytest

from openapi_tool_bridge.config import Settings
from openapi_tool_bridge.services.catalog_builder import ToolCatalogBuilder
from openapi_tool_bridge.services.credential_manager import CredentialManager
from openapi_tool_bridge.services.spec_parser import parse_spec_document

SPEC_URL = "https://api.example.gov/v3/api-docs"
BASE_URL = "https://api.example.gov"
API_KEY = "abcd1234efgh5678"


class RecordingTransport:
    """httpx mock transport that records every request it answers."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]):
        self.responder = responder
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def recording_transport():
    """Factory for recording transports."""
    def _make(responder: Callable[[httpx.Request], httpx.Response]) -> RecordingTransport:
        return RecordingTransport(responder)
    return _make


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        spec_url=SPEC_URL,
        api_base_url="",
        api_key="",
        auth_header_name="chave-api-dados",
        credential_test_url="",
        environment="test",
        log_level="DEBUG",
    )


@pytest.fixture
def raw_spec() -> Dict[str, Any]:
    """Sample OpenAPI 3 document."""
    return copy.deepcopy({
        "openapi": "3.0.1",
        "info": {"title": "Portal da Transparencia", "version": "1.0"},
        "servers": [{"url": BASE_URL}],
        "paths": {
            "/servidores": {
                "get": {
                    "operationId": "getServidores",
                    "parameters": [
                        {
                            "name": "nome",
                            "in": "query",
                            "required": False,
                            "schema": {"type": "string"},
                        }
                    ],
                }
            },
            "/api-de-dados/contratos/{id}": {
                "get": {
                    "summary": "Buscar contrato por ID",
                    "parameters": [
                        {
                            "name": "id",
                            "in": "path",
                            "required": True,
                            "schema": {"type": "integer", "format": "int64"},
                            "description": "Identificador do contrato",
                        }
                    ],
                }
            },
            "/api-de-dados/licitacoes": {
                "post": {
                    "operationId": "criarLicitacaoUsingPOST",
                    "tags": ["Licitacoes"],
                    "description": "Cria uma licitacao",
                    "parameters": [
                        {
                            "name": "X-Request-Id",
                            "in": "header",
                            "schema": {"type": "string"},
                        },
                        {
                            "name": "sessao",
                            "in": "cookie",
                            "schema": {"type": "string"},
                        },
                    ],
                    "requestBody": {
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["numero"],
                                    "properties": {
                                        "numero": {"type": "string", "description": "Numero do processo"},
                                        "valor": {"type": "number"},
                                        "modalidade": {
                                            "type": "string",
                                            "enum": ["pregao", "concorrencia"],
                                        },
                                    },
                                }
                            }
                        }
                    },
                },
                "put": {
                    "operationId": "atualizarLicitacao",
                    "requestBody": {
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Licitacao"}
                            }
                        }
                    },
                },
            },
        },
    })


@pytest.fixture
def spec_document(raw_spec):
    """Parsed sample document."""
    return parse_spec_document(raw_spec)


@pytest.fixture
def catalog(spec_document):
    """Catalog built from the sample document."""
    return ToolCatalogBuilder().build(spec_document)


@pytest.fixture
def credentials():
    """Credential manager without a key."""
    return CredentialManager(header_name="chave-api-dados", test_endpoint=SPEC_URL)

"""
Unit tests for ToolCatalogBuilder.
"""

import pytest

from openapi_tool_bridge.constants import CREDENTIAL_STATUS_TOOL_NAME
from openapi_tool_bridge.models.spec import Operation, Parameter, ParameterLocation
from openapi_tool_bridge.services.catalog_builder import (
    ToolCatalogBuilder,
    map_schema_type,
    sanitize_operation_id,
    synthesize_name,
)
from openapi_tool_bridge.services.spec_parser import parse_spec_document


def _document(paths):
    return parse_spec_document({"info": {"title": "T", "version": "1"}, "paths": paths})


def test_one_tool_per_operation(spec_document, catalog):
    """Test every operation maps to exactly one tool with a matching back-reference."""
    assert len(catalog) == len(spec_document.operations)

    for operation in spec_document.operations:
        matches = [tool for tool in catalog.values() if tool.operation == operation]
        assert len(matches) == 1

    assert len(set(catalog)) == len(catalog)


def test_tool_names(catalog):
    """Test names from operation ids and synthesized from method + path."""
    assert list(catalog) == [
        "get_servidores",
        "get_apidedados_contratos_id",
        "criar_licitacao",
        "atualizar_licitacao",
    ]


def test_servidores_tool_schema(catalog):
    """Test a single optional query parameter yields a bare string property."""
    tool = catalog["get_servidores"]

    assert tool.input_schema.to_json_schema() == {
        "type": "object",
        "properties": {"nome": {"type": "string"}},
        "required": [],
    }
    assert tool.method == "GET"
    assert tool.path == "/servidores"


def test_path_parameter_schema(catalog):
    """Test integer maps to number and metadata is carried through."""
    schema = catalog["get_apidedados_contratos_id"].input_schema.to_json_schema()

    assert schema["properties"]["id"] == {
        "type": "number",
        "format": "int64",
        "description": "Identificador do contrato",
    }
    assert schema["required"] == ["id"]


def test_inline_body_is_flattened(catalog):
    """Test inline body properties join the parameters; cookies are left out."""
    schema = catalog["criar_licitacao"].input_schema.to_json_schema()

    assert list(schema["properties"]) == ["X-Request-Id", "numero", "valor", "modalidade"]
    assert schema["properties"]["modalidade"]["enum"] == ["pregao", "concorrencia"]
    assert schema["properties"]["valor"] == {"type": "number"}
    assert schema["required"] == ["numero"]


def test_reference_body_adds_nothing(catalog):
    """Test a $ref body schema is not expanded and does not fail the build."""
    assert catalog["atualizar_licitacao"].input_schema.to_json_schema()["properties"] == {}


def test_descriptions(catalog):
    """Test summary, description and METHOD path fallbacks."""
    assert catalog["get_apidedados_contratos_id"].description == "[CONTRATOS] Buscar contrato por ID"
    assert catalog["criar_licitacao"].description == "[LICITACOES] Cria uma licitacao"
    assert catalog["get_servidores"].description == "[SERVIDORES] GET /servidores"
    assert catalog["atualizar_licitacao"].description == "[LICITACOES] PUT /api-de-dados/licitacoes"


def test_categories(catalog):
    """Test tag first, then path keywords."""
    assert catalog["criar_licitacao"].category == "licitacoes"
    assert catalog["get_servidores"].category == "servidores"
    assert catalog["get_apidedados_contratos_id"].category == "contratos"


def test_default_category():
    """Test unmatched paths fall back to the default category."""
    catalog = ToolCatalogBuilder().build(_document({"/misc/things": {"get": {}}}))

    assert catalog["get_misc_things"].category == "general"


def test_build_is_deterministic(raw_spec):
    """Test rebuilding from an unchanged document gives identical catalogs."""
    builder = ToolCatalogBuilder()

    first = builder.build(parse_spec_document(raw_spec))
    second = builder.build(parse_spec_document(raw_spec))

    assert list(first) == list(second)
    assert dict(first) == dict(second)


def test_name_collisions_are_disambiguated():
    """Test colliding names keep every operation reachable."""
    document = _document({
        "/servidores": {
            "get": {"operationId": "listar"},
            "post": {"operationId": "listarUsingPOST"},
        },
        "/contratos": {
            "get": {"operationId": "listar"},
        },
    })

    catalog = ToolCatalogBuilder().build(document)

    assert list(catalog) == ["listar", "listar_2", "listar_3"]
    assert [tool.operation.endpoint for tool in catalog.values()] == [
        "GET /servidores",
        "POST /servidores",
        "GET /contratos",
    ]


def test_suffix_skips_names_already_taken():
    """Test a suffixed name never overwrites an operation that owns it."""
    document = _document({
        "/a": {"get": {"operationId": "busca_2"}},
        "/b": {"get": {"operationId": "busca"}},
        "/c": {"get": {"operationId": "busca"}},
    })

    catalog = ToolCatalogBuilder().build(document)

    assert list(catalog) == ["busca_2", "busca", "busca_3"]


def test_reserved_names_are_not_assigned():
    """Test the credential-status action name is never given to a catalog tool."""
    document = _document({"/key": {"get": {"operationId": "checkApiKey"}}})

    catalog = ToolCatalogBuilder().build(document, reserved_names={CREDENTIAL_STATUS_TOOL_NAME})

    assert CREDENTIAL_STATUS_TOOL_NAME not in catalog
    assert list(catalog) == [f"{CREDENTIAL_STATUS_TOOL_NAME}_2"]


def test_name_prefix():
    catalog = ToolCatalogBuilder(name_prefix="Portal").build(
        _document({"/orgaos": {"get": {"operationId": "getOrgaos"}}})
    )

    assert list(catalog) == ["portal_get_orgaos"]


@pytest.mark.parametrize("operation_id,expected", [
    ("getServidores", "get_servidores"),
    ("getServidoresUsingGET", "get_servidores"),
    ("getServidoresUsingGET_1", "get_servidores"),
    ("consultaCPFPorNome", "consulta_cpf_por_nome"),
    ("listar-orgaos.siafi", "listar_orgaos_siafi"),
    ("__weird__Name__", "weird_name"),
    ("!!!", ""),
])
def test_sanitize_operation_id(operation_id, expected):
    assert sanitize_operation_id(operation_id) == expected


@pytest.mark.parametrize("method,path,expected", [
    ("GET", "/api-de-dados/contratos/{id}", "get_apidedados_contratos_id"),
    ("POST", "/orgaos", "post_orgaos"),
    ("GET", "/", "get"),
    ("DELETE", "/v1/itens/{item.id}/", "delete_v1_itens_itemid"),
])
def test_synthesize_name(method, path, expected):
    assert synthesize_name(method, path) == expected


def test_unusable_operation_id_falls_back_to_synthesized_name():
    """Test an id that sanitizes to nothing falls back to method + path."""
    catalog = ToolCatalogBuilder().build(_document({"/orgaos": {"get": {"operationId": "!!!"}}}))

    assert list(catalog) == ["get_orgaos"]


@pytest.mark.parametrize("declared,expected", [
    ("integer", "number"),
    ("number", "number"),
    ("boolean", "boolean"),
    ("array", "array"),
    ("object", "object"),
    ("string", "string"),
    ("file", "string"),
    (None, "string"),
])
def test_map_schema_type(declared, expected):
    assert map_schema_type(declared) == expected


def test_deprecated_operation_description():
    operation = Operation(
        method="GET",
        path="/viagens",
        summary="Lista viagens",
        deprecated=True,
        parameters=[Parameter(name="ano", location=ParameterLocation.QUERY, type="integer")],
    )

    tool = ToolCatalogBuilder().build_descriptor(operation, "get_viagens")

    assert tool.description == "[VIAGENS] Lista viagens (deprecated)"
    assert tool.input_schema.properties["ano"].type == "number"


class _FlakyBuilder(ToolCatalogBuilder):
    """Fails derivation for one path."""

    def derive_name(self, operation):
        if operation.path == "/bad-name":
            raise ValueError("unusable identifier")
        return super().derive_name(operation)

    def build_input_schema(self, operation):
        if operation.path == "/bad-schema":
            raise ValueError("unusable schema")
        return super().build_input_schema(operation)


def test_derivation_failure_falls_back_to_defaults():
    """Test one bad operation does not abort the build."""
    document = _document({
        "/bad-name": {"get": {"operationId": "whatever"}},
        "/bad-schema": {"get": {"operationId": "getContratos", "tags": ["Contratos"]}},
        "/orgaos": {"get": {"operationId": "getOrgaos"}},
    })

    catalog = _FlakyBuilder().build(document)

    assert list(catalog) == ["get_badname", "get_contratos", "get_orgaos"]
    fallback = catalog["get_contratos"]
    assert fallback.category == "general"
    assert fallback.description == "[GENERAL] GET /bad-schema"
    assert fallback.input_schema.to_json_schema()["properties"] == {}
    assert catalog["get_orgaos"].category == "orgaos"

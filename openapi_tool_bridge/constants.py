"""
Shared constants for catalog derivation and call execution.

This module contains the category vocabulary, the fixed request headers
and the remediation messages returned to the calling agent.
"""

# HTTP methods that denote an operation inside a path item
HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Always-present, catalog-independent action reporting credential status
CREDENTIAL_STATUS_TOOL_NAME = "check_api_key"

DEFAULT_CATEGORY = "general"

# Resource nouns matched against path segments when an operation has no tag.
# Order matters: the first category whose keyword occurs in a segment wins.
CATEGORY_KEYWORDS = {
    "servidores": ("servidores", "servidor", "remuneracao"),
    "contratos": ("contratos", "contrato"),
    "licitacoes": ("licitacoes", "licitacao"),
    "convenios": ("convenios", "convenio"),
    "despesas": ("despesas", "despesa", "gastos"),
    "emendas": ("emendas", "emenda"),
    "viagens": ("viagens", "viagem"),
    "cartoes": ("cartoes", "cartao"),
    "sancoes": ("ceis", "cnep", "cepim", "ceaf", "leniencia", "sancoes"),
    "beneficios": (
        "bolsa-familia",
        "novo-bolsa-familia",
        "bpc",
        "seguro-defeso",
        "garantia-safra",
        "peti",
        "auxilio-emergencial",
        "beneficios",
    ),
    "orgaos": ("orgaos", "orgao"),
    "pessoas": ("pessoa-fisica", "pessoa-juridica", "pessoas"),
    "imoveis": ("imoveis", "imovel"),
    "notas_fiscais": ("notas-fiscais", "nota-fiscal"),
    "renuncias": ("renuncias", "renuncia"),
    "coronavirus": ("coronavirus",),
}

DEFAULT_REQUEST_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Remediation messages for failed invocations, keyed by failure class
ERROR_MESSAGES = {
    "bad_request": (
        "The API rejected the request parameters (HTTP 400). "
        "Check required parameters, value formats and allowed values."
    ),
    "missing_credential": (
        "The API requires authentication (HTTP {status}) but no API key is configured. "
        "Set API_KEY in the environment and restart the server, "
        "or call '" + CREDENTIAL_STATUS_TOOL_NAME + "' for details."
    ),
    "rejected_credential": (
        "The configured API key was rejected (HTTP {status}). "
        "Verify that the key is correct, active and allowed to use this endpoint."
    ),
    "not_found": (
        "The requested resource was not found (HTTP 404). "
        "Check identifiers and path parameters."
    ),
    "rate_limited": (
        "Rate limit exceeded (HTTP 429). Wait before issuing more requests."
    ),
    "server_error": (
        "The API failed to process the request (HTTP {status}). "
        "The service may be unstable; try again later."
    ),
    "network": (
        "Could not reach the API: {detail}. Check network connectivity and the base URL."
    ),
    "missing_path_parameters": (
        "Missing required path parameters: {names}."
    ),
    "invalid_header": (
        "Header values must be ASCII text; cannot send: {names}. "
        "Remove accents or other non-ASCII characters from these values."
    ),
    "unexpected": (
        "The API call failed (HTTP {status}): {detail}"
    ),
}

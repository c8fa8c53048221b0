"""OpenAPI tool bridge: exposes an OpenAPI-described HTTP API as invocable tools."""

from elucidario.core.settings import Settings


def endpoint_path(settings: Settings, endpoint: str = "", param: str | None = None) -> str:
    """``/api/v1[/endpoint][/{param}]`` for the configured prefix and version."""
    parts = ["", settings.api_prefix.strip("/"), settings.api_version.strip("/")]
    if endpoint:
        parts.append(endpoint.strip("/"))
    if param:
        parts.append(f"{{{param}}}")
    return "/".join(parts)

"""
Resolve a build id or a build results URL into a RunReference.

Accepted forms:
    42                                                     (needs a default org/project)
    https://dev.azure.com/{org}/{project}/_build/results?buildId=42
    https://{org}.visualstudio.com/{project}/_build/results?buildId=42

The ``buildId`` query parameter may appear anywhere in the query string
and is matched case-insensitively. Organization and project names are
percent-decoded.
"""

from urllib.parse import unquote, urlsplit

from pipewatch.core.devops.models import RunReference
from pipewatch.core.exceptions import RunReferenceError


def parse_run_reference(
    value: str,
    organization: str | None = None,
    project: str | None = None,
) -> RunReference:
    """
    Parse a build id or build results URL.

    Args:
        value: Numeric build id or Azure DevOps build results URL
        organization: Default organization for numeric ids
        project: Default project for numeric ids

    Returns:
        RunReference

    Raises:
        RunReferenceError: If the value is neither, or a numeric id is given
            without a default organization and project
    """
    value = value.strip()

    parsed = _parse_build_url(value)
    if parsed is not None:
        return parsed

    if not _is_build_id(value):
        raise RunReferenceError(
            f"Invalid argument '{value}'. Provide a numeric build ID or an "
            "Azure DevOps build results URL."
        )

    if not organization or not project:
        raise RunReferenceError(
            "No default organization/project configured. Set PIPEWATCH_ORG and "
            "PIPEWATCH_PROJECT, or use a full build URL instead."
        )

    return RunReference(organization=organization, project=project, build_id=int(value))


def _parse_build_url(value: str) -> RunReference | None:
    try:
        parts = urlsplit(value)
    except ValueError:
        return None

    if parts.scheme.lower() not in ("http", "https") or not parts.query:
        return None

    build_id: int | None = None
    for param in parts.query.split("&"):
        key, sep, raw = param.partition("=")
        if sep and key.lower() == "buildid":
            if not _is_build_id(raw):
                return None
            build_id = int(raw)
            break
    if build_id is None:
        return None

    host = (parts.hostname or "").lower()
    segments = [s for s in parts.path.split("/") if s]

    # Modern: dev.azure.com/{org}/{project}/_build/results
    if host == "dev.azure.com" and len(segments) >= 2:
        return RunReference(
            organization=unquote(segments[0]),
            project=unquote(segments[1]),
            build_id=build_id,
        )

    # Legacy: {org}.visualstudio.com/{project}/_build/results
    if host.endswith(".visualstudio.com") and len(segments) >= 1:
        return RunReference(
            organization=host.split(".")[0],
            project=unquote(segments[0]),
            build_id=build_id,
        )

    return None


def _is_build_id(text: str) -> bool:
    return text.isascii() and text.isdigit()

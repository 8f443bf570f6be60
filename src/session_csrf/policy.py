"""Interception policy: which requests must carry a CSRF token.

A request is exempt when its path contains any configured ignored
substring, or when its method is one of the ignored (safe) methods.
"""

from collections.abc import Collection, Iterable

DEFAULT_IGNORED_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS"})


def is_path_ignored(path: str, ignored_paths: Iterable[str]) -> bool:
    """Check whether any ignored substring occurs in the path.

    Args:
        path: Request path
        ignored_paths: Substrings that exempt a path

    Returns:
        True if the path contains one of the substrings
    """
    return any(ignored in path for ignored in ignored_paths if ignored)


def requires_check(
    method: str,
    path: str,
    ignored_methods: Collection[str] = DEFAULT_IGNORED_METHODS,
    ignored_paths: Iterable[str] = (),
) -> bool:
    """Decide whether a request is subject to CSRF validation.

    Args:
        method: HTTP method of the request
        path: Request path
        ignored_methods: Methods exempt from checking (upper case)
        ignored_paths: Path substrings exempt from checking

    Returns:
        True if the request must present a valid token

    Example:
        >>> requires_check("POST", "/account/delete")
        True
        >>> requires_check("GET", "/account")
        False
        >>> requires_check("POST", "/hooks/github", ignored_paths=["/hooks/"])
        False
    """
    if is_path_ignored(path, ignored_paths):
        return False
    return method.upper() not in ignored_methods

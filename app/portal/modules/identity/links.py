from __future__ import annotations

import urllib.parse

from app.portal.modules.identity.models import ResolvedIdentity
from app.portal.registry import AppDescriptor, IdentifierKind


def link_to(target: AppDescriptor, identity: ResolvedIdentity) -> str:
    """
    Outbound URL for `target` carrying `identity`.

    The identifier the target expects goes in the path; every other known identifier rides
    along in the query ("backpack"). With nothing known the bare base URL is returned.
    """
    url = target.base_url.rstrip("/")
    path_kind = target.expected_kind
    path_value = identity.get(path_kind) if path_kind is not None else None
    if path_value is not None:
        url += "/" + urllib.parse.quote(path_value, safe="")

    backpack = [
        (kind.query_key, identity.get(kind))
        for kind in IdentifierKind
        if identity.get(kind) is not None and not (kind is path_kind and path_value is not None)
    ]
    if backpack:
        url += "?" + urllib.parse.urlencode(backpack)
    return url

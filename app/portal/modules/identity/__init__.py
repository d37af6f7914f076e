"""
Cross-app identity propagation.

Satellite apps share no session store; the only channels are the URL (path segment and
query "backpack") and the browser-persisted identity cookie. This module reads those
sources, resolves an authoritative (contact id, account id) pair for the app currently
serving the page, and builds outbound links for the other apps.
"""

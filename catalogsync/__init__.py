"""catalogsync: client for an events / properties / tracking plans catalog.

The package keeps local snapshots of the three catalog collections
consistent with a remote authority:
- typed CRUD calls against the REST API
- denormalized create payloads built from form selections
- one error message format for every fetch and mutation path
- full reload after every successful write
"""

__version__ = "0.1.0"

"""Registry — aggregation and source-of-truth layer for plugin manifests.

The registry provides:
- Loading: walk the plugins tree and validate every manifest
- Aggregation: collapse version directories into one record per plugin
- Integrity: duplicate detection over built registry documents
- Discovery: read-only search over registry.json
"""

"""
Domain Layer - Pure Telemetry Logic

This layer contains:
- Entities: Measured operations
- Value Objects: Immutable snapshots, scores, thresholds and recommendations
- Services: Scoring, recommendation and budget rules
- Interfaces: Capabilities the domain needs from the platform

No external dependencies allowed in this layer.
"""

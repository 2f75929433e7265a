"""Certus - recruitment analytics data layer.

This service turns abstract business metrics into renderable data:
- Data asset catalog (named, synonym-tagged metrics)
- Shape contracts (the six canonical payload formats widgets consume)
- Query executor (materializes a shape from activity records)
- Widget registry, resolver and compatibility selector
"""

__version__ = "0.1.0"

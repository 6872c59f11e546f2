"""Route Modules — one file per resource.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes decode parameters, make one remote call and shape the answer;
      nothing else
"""

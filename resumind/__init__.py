# resumind/__init__.py
# ============================================================
# Resumind: Resume Rendering & Analysis Pipeline
# ============================================================
# Root package. Sub-packages:
#   - resumind.render    → Engine loader + page-to-PNG renderer
#   - resumind.analysis  → Prompts, response schemas, AI client
#   - resumind.services  → Storage / key-value collaborators
#   - resumind.pipeline  → Six-stage submission orchestrator
#   - resumind.utils     → Shared utilities (logging, image helpers)
# ============================================================

__version__ = "0.1.0"

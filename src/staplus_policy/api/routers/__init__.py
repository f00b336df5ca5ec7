# Routers are imported directly from submodules by `api.app`.

"""Root conftest — shared test configuration."""

import os

# Tests must never reach a real cluster peer
os.environ.setdefault("RPC_URL", "http://cluster.invalid/rpc")
os.environ.setdefault("UPLOADER_URL", "http://cluster.invalid/add")
os.environ.setdefault("LOG_FORMAT", "text")

#!/usr/bin/env python3
"""
Tailor Server

Runs the Flask server that validates pull requests against the
configured rules.
"""

import os
import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from tailor.api import TailorAPI
from tailor.config import ConfigManager
from tailor.server import create_app


if __name__ == '__main__':
    config = ConfigManager().config
    app = create_app(TailorAPI.from_config(config))

    port = int(os.getenv("PORT", "8000"))
    print("🚀 Starting Tailor Server...")
    print(f"📍 Server will be available at: http://localhost:{port}")
    print("📋 API Documentation:")
    print("   - Health Check: GET /api/v1/health")
    print("   - Validate PR: POST /api/v1/pulls/validate")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=config.debug
    )

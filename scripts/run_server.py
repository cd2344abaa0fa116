#!/usr/bin/env python3
"""
Start the Nash API server.
Loads settings from a local .env file before the app reads its configuration.
"""

import argparse
import sys
from pathlib import Path

import dotenv

dotenv.load_dotenv()

# Add the parent directory to sys.path to import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))


def main():
    parser = argparse.ArgumentParser(description="Run the Nash API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=3000, help="Port to listen on (default: 3000)")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    from nash.core.config import validate_config

    issues = validate_config()
    if issues:
        print("❌ Configuration invalid:")
        for issue in issues:
            print(f"   - {issue}")
        sys.exit(1)

    import uvicorn

    print(f"🚀 Server running on http://{args.host}:{args.port}")
    uvicorn.run("nash.api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Environment validation script for the BetterNotes LaTeX API.
Loads the settings the server would use and reports problems before startup.
"""

import os
import sys

from dotenv import load_dotenv
from pydantic import ValidationError


def main():
    """Main validation function."""
    print("🔍 Validating Environment Configuration")
    print("=" * 50)
    print()

    env_file = os.path.join("backend", ".env")
    if os.path.exists(env_file):
        print(f"📄 Loading environment from {env_file}")
        load_dotenv(env_file)
    else:
        print(f"⚠️  {env_file} not found. Using system environment variables.")
    print()

    try:
        from betternotes.core.config import settings, build_config_report
    except ValidationError as exc:
        print("❌ Validation failed with the following errors:")
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error.get("loc", []))
            print(f"  ❌ {field}: {error.get('msg')}")
        print()
        return 1

    from betternotes.services.latex.toolchain import available_tools, command_exists, plan_invocation

    print("Effective LaTeX settings...")
    print(f"✅ LATEX_TIMEOUT_MS: {settings.LATEX_TIMEOUT_MS}")
    print(f"✅ LATEX_MAX_BUFFER_BYTES: {settings.LATEX_MAX_BUFFER_BYTES}")
    print(f"✅ LATEX_MAX_LOG_CHARS: {settings.LATEX_MAX_LOG_CHARS}")
    print(f"✅ TEMPLATE_DIR: {settings.template_dir_path}")
    print()

    print("Checking LaTeX toolchain...")
    for tool, present in available_tools(command_exists).items():
        print(f"{'✅' if present else '⚪'} {tool}: {'found' if present else 'not found'}")
    print(f"➡️  Invocation plan: {plan_invocation(command_exists).value}")
    print()

    warnings = build_config_report(settings, exists=command_exists)

    print("=" * 50)
    if warnings:
        print("⚠️  Validation passed with warnings:")
        for warning in warnings:
            print(f"  ⚠️  {warning}")
        print()

    print("✅ Environment validation passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())

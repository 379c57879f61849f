# Quick reference commands (run from repo root). These are comments only; copy/paste as needed.

# Install the project with test dependencies, plus the Chromium build Playwright drives
# python -m pip install -e ".[test]"
# python -m playwright install chromium

# Run the full test suite (store tests skip unless DATABASE_URL is set)
# python -m pytest

# Run focused test files
# python -m pytest tests/test_spec_parser.py tests/test_rule_filter.py
# python -m pytest tests/test_diff.py tests/test_batcher.py
# python -m pytest tests/test_tracker.py tests/test_scheduler.py
# python -m pytest tests/test_api_tracking.py tests/test_api_rules.py tests/test_line_webhook.py

# Run only the Postgres-backed store tests
# DATABASE_URL=postgresql://localhost/apple_tracker_test python -m pytest -m integration

# Start the API locally (with env vars loaded); restores tracking if it was on
# python -m dotenv run -- python -m uvicorn app.api:app --reload

# Run the tracker worker loop / a single pass
# python -m dotenv run -- python -m worker.main
# python -m dotenv run -- python -m worker.main --once

# Print the alert messages stored products would trigger (nothing is sent)
# python -m scripts.preview_alerts
# python -m scripts.preview_alerts --user U1234567890abcdef

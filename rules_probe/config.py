from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

# Load local.env if present so FIRESTORE_PROJECT, PROBE_UID etc. are available
try:
	from dotenv import load_dotenv
	dotenv_path = BASE_DIR / 'local.env'
	if dotenv_path.exists():
		load_dotenv(dotenv_path)
except ImportError:
	# python-dotenv is optional; ignore if not installed
	pass


def _env_number(name, default, cast=float):
	"""Numeric env var, falling back to `default` when unset or malformed."""
	try:
		return cast(os.environ.get(name, default))
	except (TypeError, ValueError):
		return cast(default)


# Signal identifier that activates a probe run (exact match)
PROBE_ACTION = os.environ.get('PROBE_ACTION', 'com.dawitf.akahidegn.DEBUG_TEST_FIREBASE_RULES')
PROBE_COLLECTION = os.environ.get('PROBE_COLLECTION', 'groups')

# Per remote call timeout in seconds; 0 disables it
PROBE_TIMEOUT_SECONDS = _env_number('PROBE_TIMEOUT_SECONDS', 30.0)

FIRESTORE_PROJECT = os.environ.get('FIRESTORE_PROJECT')
# When set, uid-only principals get unsigned emulator tokens
FIRESTORE_EMULATOR_HOST = os.environ.get('FIRESTORE_EMULATOR_HOST')
# Service account used when GOOGLE_APPLICATION_CREDENTIALS is not set
DEFAULT_SA = BASE_DIR / 'rules-probe-firestore.json'

# Static principal for CLI and local dev runs
PROBE_UID = os.environ.get('PROBE_UID')

# API keys for securing the signal endpoint
# Support either a single `API_KEY` or a comma-separated `API_KEYS`
API_KEYS = []
if os.environ.get('API_KEYS'):
	API_KEYS = [k.strip() for k in os.environ.get('API_KEYS', '').split(',') if k.strip()]
elif os.environ.get('API_KEY'):
	API_KEYS = [os.environ.get('API_KEY')]

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')

# Probe records older than this are treated as orphans by the sweep
ORPHAN_MAX_AGE_MINUTES = _env_number('ORPHAN_MAX_AGE_MINUTES', 30, int)

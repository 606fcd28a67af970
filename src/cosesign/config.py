import os
from dotenv import load_dotenv

load_dotenv()

# Variant assumed for untagged envelopes: sign (COSE_Sign, tag 98) | sign1 (COSE_Sign1, tag 18)
DEFAULT_ENVELOPE_TYPE = os.getenv("COSE_DEFAULT_TYPE", "sign").strip().lower()

# Single-signer verify may take alg from unprotected headers when protected lacks it
ALLOW_UNPROTECTED_ALG = os.getenv("COSE_ALLOW_UNPROTECTED_ALG", "true").lower() == "true"

LOG_LEVEL = os.getenv("COSE_LOG_LEVEL", "INFO").upper()
METRICS_ENABLED = os.getenv("COSE_METRICS_ENABLED", "true").lower() == "true"

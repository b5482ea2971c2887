"""Model substitution defaults.

MODEL_MAPPINGS rename a client-facing model to another before dispatch.
MODEL_FALLBACKS are ordered `from -> to` substitutions tried when the
requested model cannot be served; MODEL_FALLBACK_DEPTH bounds how many hops a
fallback chain may follow (None means the default of 3, 0 disables fallback).
"""

MODEL_MAPPINGS = []

MODEL_FALLBACKS = []

MODEL_FALLBACK_DEPTH = None

"""Named tolerances and defaults for scheme generation and validation.

Areas in square metres, distances in metres.
"""

# Topology
OVERLAP_EPSILON = 0.01            # overlap/outside area below this is boundary noise
MIN_GAP_AREA = 1.0                # uncovered parent area reported as a gap
GAP_ERROR_RATIO = None            # gap fraction of parent that becomes an error (off)

# Area conservation
AREA_TOLERANCE = 0.01             # |sections + common - parent|

# Geometry generation
GENERATION_REL_TOLERANCE = 0.01   # slice area vs. target, relative
BISECTION_ITERATIONS = 100        # fixed count keeps cuts bit-reproducible
GENERATION_MAX_CUTS = 1000        # sweep attempts before the search gives up

# Participation quotas (percent)
QUOTA_TOTAL = 100.0
QUOTA_TOLERANCE = 0.0001
QUOTA_SMALL = 0.01                # smaller quotas draw a warning
QUOTA_PRECISION = 4               # decimal places

# Survey accuracy
MAX_CLOSURE_ERROR = 0.01          # metres
MIN_ACCURACY_RATIO = 10000.0      # 1:10,000
BORDERLINE_ACCURACY = 1.2         # ratio within 20% of minimum draws a warning

# Floor levels spread wider than this draw a warning
FLOOR_RANGE_WARN = 50

# Common property larger than this share of section area draws a warning
COMMON_AREA_WARN_RATIO = 0.5

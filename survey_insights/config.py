"""
Settings for the survey report.

Column names, missing-answer codes and the favorable-answer rules live here so
the report can be pointed at another wave of the survey without touching the
aggregation code.

Usage:
    from survey_insights.config import DATA_PATHS, COLUMN_MAP, QUESTIONS
"""

from .metrics import AggregationSpec, RangeRule, SetRule

# ============================================================================
# DATA PATHS
# ============================================================================

DATA_PATHS = {
    'raw_survey': 'data/survey.csv',
    'output_dir': 'output',
    'satisfaction_chart': 'gov_satisfaction.png',
    'preference_chart': 'system_preference.png',
    'scatter_chart': 'satisfaction_vs_democracy.png',
    'summary_csv': 'country_summary.csv',
}

# ============================================================================
# COLUMNS
# ============================================================================

# raw header -> analysis name (raw headers matched case-insensitively)
COLUMN_MAP = {
    'COUNTRY': 'country',
    'Q513': 'gov_sat',
    'Q516A': 'demo_pref',
    'Q516B': 'auth_pref',
}

GROUP_COLUMN = 'country'

# ============================================================================
# MISSING ANSWERS
# ============================================================================

# 98 = don't know, 99 = refused; negatives are system-missing in the export
MISSING_CODES = {98, 99, -1, -2}
MISSING_LABELS = {"", "Don't know", "Refused", "Missing", "NA"}

# ============================================================================
# FAVORABLE RESPONSES
# ============================================================================

SATISFACTION_RANGE = (6, 10)  # inclusive, on a 0-10 scale
FAVORABLE_LABELS = frozenset({"Very good", "Good"})

QUESTIONS = {
    'gov_sat': AggregationSpec('gov_sat', RangeRule(*SATISFACTION_RANGE),
                               title='Satisfied with government'),
    'demo_pref': AggregationSpec('demo_pref', SetRule(FAVORABLE_LABELS),
                                 title='Favor democracy'),
    'auth_pref': AggregationSpec('auth_pref', SetRule(FAVORABLE_LABELS),
                                 title='Favor strong leader'),
}

# Filter on every question column at once before aggregating, instead of
# only on the columns each aggregation uses.
COMBINED_FILTER = False

# ============================================================================
# CHARTS
# ============================================================================

# which QUESTIONS keys feed each chart
CHART_QUESTIONS = {
    'satisfaction': 'gov_sat',
    'preferences': ['demo_pref', 'auth_pref'],
    'scatter': ('gov_sat', 'demo_pref'),  # (x, y)
}

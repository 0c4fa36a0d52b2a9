"""Pure analytics over health records: normalisation, series, trends,
correlations, goal progress and summaries."""

DATASET = {
    "name": "case_counts",
    "source_name": "State disease surveillance case counts",
    "fast_path_suffix": ".json",
    "columns": {
        "State": "State name; joined to the geography document by exact string",
        "Year": "Reporting year",
        "Cases": "Reported case count for the state and year",
    },
    "limitations": "Rows without a usable state or year are dropped; a missing case count is read as 0.",
}

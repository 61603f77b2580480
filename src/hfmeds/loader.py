import os

import pandas as pd

DEFAULT_KEY_POINTS_PATH = os.path.join(os.path.dirname(__file__), "data", "key_points.csv")

# Columns that need renaming → target field names
RENAME_MAP = {
    "recommendations": "medication",
    "medication_category": "medication",
    "symptoms": "symptom_score",
    "symptom_score_category": "symptom_score",
    "dizziness_category": "dizziness",
    "weight_category": "weight",
    "texts": "en",
}


def key_points_path() -> str:
    """Key-point CSV location: $HFMEDS_KEY_POINTS_PATH, else the packaged table."""
    return os.getenv("HFMEDS_KEY_POINTS_PATH") or DEFAULT_KEY_POINTS_PATH


def load_table(path: str) -> pd.DataFrame:
    """
    Read a key-point CSV into a DataFrame:
      - every cell as a string, empty cells as ''
      - normalize all headers to snake_case lowercase
      - apply renames from RENAME_MAP
    Language columns ('en', 'de', 'pt-BR', ...) keep their tag, lower-cased.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8")

    # CLEAN & NORMALIZE headers:
    df.columns = (
        df.columns.str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.lower()
    )

    df = df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns
        }
    )
    return df

from hfmeds.loader import DEFAULT_KEY_POINTS_PATH, key_points_path, load_table


def test_headers_are_normalized_and_renamed(write_csv):
    path = write_csv(" Recommendations ,Symptoms,Dizziness Category (trend),WEIGHT,Texts\nat-target,worsening,worsening,missing,Hi\n")
    df = load_table(path)
    assert list(df.columns) == ["medication", "symptom_score", "dizziness", "weight", "en"]
    assert df.iloc[0]["en"] == "Hi"


def test_empty_cells_stay_strings(write_csv):
    path = write_csv("medication,symptom_score,dizziness,weight,en,de\nat-target,worsening,worsening,missing,Hi,\n")
    assert load_table(path).iloc[0]["de"] == ""


def test_key_points_path_from_environment(monkeypatch):
    monkeypatch.delenv("HFMEDS_KEY_POINTS_PATH", raising=False)
    assert key_points_path() == DEFAULT_KEY_POINTS_PATH
    monkeypatch.setenv("HFMEDS_KEY_POINTS_PATH", "/tmp/other.csv")
    assert key_points_path() == "/tmp/other.csv"

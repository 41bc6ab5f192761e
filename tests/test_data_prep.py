import numpy as np
import pandas as pd
import pytest

from survey_insights.data_prep import drop_missing, load_survey, normalize_missing, prepare_survey

COLUMN_MAP = {"COUNTRY": "country", "Q1": "gov_sat", "Q2": "pref"}


@pytest.fixture
def survey_csv(tmp_path):
    p = tmp_path / "survey.csv"
    p.write_text(
        "country,q1,Q2,extra\n"
        "Egypt,8,Good,x\n"
        "Egypt,2,Bad,x\n"
        "Egypt,98,Don't know,x\n"
        "Libya,3,Very good,x\n"
        ",7, Good ,x\n"
    )
    return p


def test_load_survey_maps_headers_case_insensitively(survey_csv):
    df = load_survey(str(survey_csv), COLUMN_MAP)
    assert list(df.columns) == ["country", "gov_sat", "pref"]
    assert len(df) == 5


def test_load_survey_reports_missing_columns(survey_csv):
    with pytest.raises(ValueError, match="Q9"):
        load_survey(str(survey_csv), {"COUNTRY": "country", "Q9": "x"})


def test_load_survey_sniffs_semicolons(tmp_path):
    p = tmp_path / "survey.csv"
    p.write_text("COUNTRY;Q1;Q2\nIraq;7;Good\n")
    df = load_survey(str(p), COLUMN_MAP)
    assert df.loc[0, "country"] == "Iraq"


def test_normalize_missing_codes_and_labels():
    df = pd.DataFrame({"a": [1, 98, 99, 5], "b": ["Good", " Don't know ", "", "Bad "]})
    out = normalize_missing(df, ["a", "b"], missing_codes={98, 99}, missing_labels={"Don't know"})
    assert out["a"].isna().tolist() == [False, True, True, False]
    assert out["b"].isna().tolist() == [False, True, True, False]
    assert out.loc[3, "b"] == "Bad"
    # input untouched
    assert df.loc[1, "a"] == 98


def test_normalize_missing_converts_numeric_text():
    df = pd.DataFrame({"a": ["7", "Refused", "3"]})
    out = normalize_missing(df, ["a"], missing_codes={98}, missing_labels={"Refused"})
    assert pd.api.types.is_numeric_dtype(out["a"])
    assert out["a"].isna().sum() == 1


def test_drop_missing_removes_exactly_rows_with_na():
    df = pd.DataFrame({
        "country": ["A", None, "B", "C", "D"],
        "t": [1.0, 2.0, np.nan, 4.0, 5.0],
        "other": [np.nan, 1, 1, 1, 1],
    })
    out = drop_missing(df, ["country", "t"])
    n_missing = int(df[["country", "t"]].isna().any(axis=1).sum())
    assert len(df) - len(out) == n_missing == 2
    # a gap in a column not in use does not drop the row
    assert "A" in out["country"].tolist()


def test_prepare_survey(survey_csv):
    df = prepare_survey(str(survey_csv), COLUMN_MAP, missing_codes={98, 99},
                        missing_labels={"Don't know"}, group_col="country")
    assert df["gov_sat"].isna().sum() == 1
    assert df["pref"].isna().sum() == 1
    assert df["country"].isna().sum() == 1
    assert df.loc[4, "pref"] == "Good"

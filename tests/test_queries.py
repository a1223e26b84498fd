from datetime import date
import pandas as pd
import pytest
from property_reports.config import ReportParameters
from conftest import record


def rows(df):
    return [tuple(r) for r in df.itertuples(index=False)]


def test_high_value_is_set_union(make_reports):
    reports = make_reports([
        record("1 Main St", "Avon", 2020, assessed=1_500_000, sale=1_500_000),
        record("1 Main St", "Avon", 2021, assessed=1_500_000),  # re-listed, same value
        record("2 Oak St", "Avon", 2020, assessed=500_000, sale=2_000_000),
        record("3 Elm St", "Avon", 2020, assessed=1_000_000, sale=900_000),  # threshold is strict
    ])
    df = reports.get_high_value()
    assert list(df.columns) == ['address', 'town', 'amount', 'source']
    assert rows(df) == [
        ("2 Oak St", "Avon", 2_000_000.0, "Sale_Amount"),
        ("1 Main St", "Avon", 1_500_000.0, "Listed_Value"),
        ("1 Main St", "Avon", 1_500_000.0, "Sale_Amount"),
    ]


@pytest.fixture
def assessed_vs_sold(make_reports):
    return make_reports([
        record("1 Main St", "Avon", 2020, assessed=200_000, sale=200_000),
        record("1 Main St", "Avon", 2021, assessed=200_000, sale=200_000),
        record("2 Oak St", "Avon", 2020, assessed=300_000, sale=350_000),
        record("2 Oak St", "Avon", 2021, assessed=350_000),
        record("3 Elm St", "Bolton", 2020, assessed=100_000),
        record("4 Pine St", "Bolton", 2020, sale=50_000),
    ])


def test_exact_matches(assessed_vs_sold):
    df = assessed_vs_sold.get_exact_matches()
    assert rows(df) == [
        ("1 Main St", "Avon", 200_000.0),
        ("2 Oak St", "Avon", 350_000.0),
    ]


def test_assessed_not_sold(assessed_vs_sold):
    df = assessed_vs_sold.get_assessed_not_sold()
    assert rows(df) == [
        ("2 Oak St", "Avon", 300_000.0),
        ("3 Elm St", "Bolton", 100_000.0),
    ]


def test_difference_and_intersection_partition_assessed_set(assessed_vs_sold):
    matched = set(rows(assessed_vs_sold.get_exact_matches()))
    unsold = set(rows(assessed_vs_sold.get_assessed_not_sold()))
    with assessed_vs_sold._connect() as db:
        everything = db.query(
            "SELECT DISTINCT address, town, assessed_value FROM property_sales WHERE assessed_value IS NOT NULL"
        )
    assert matched.isdisjoint(unsold)
    assert matched | unsold == set(rows(everything))


def test_town_exclusive(make_reports):
    reports = make_reports([
        record("1 Main St", "Clinton", assessed=100_000),
        record("2 Oak St", "Clinton", assessed=200_000),
        record("5 Lot Rd", "Clinton"),
        record("1 Main St", "Lebanon", assessed=100_000),
        record("2 Oak St", "Lebanon", assessed=250_000),
    ])
    df = reports.get_town_exclusive()
    assert list(df.columns) == ['address', 'assessed_value']
    assert rows(df) == [("2 Oak St", 200_000.0)]

    reversed_df = reports.get_town_exclusive(town_a="Lebanon", town_b="Clinton")
    assert rows(reversed_df) == [("2 Oak St", 250_000.0)]


def test_shared_property_types(make_reports):
    reports = make_reports([
        record("1 A St", "Ansonia", assessed=100_000, ptype="Residential"),
        record("2 A St", "Ansonia", assessed=100_000, ptype="Residential"),
        record("3 A St", "Ansonia", assessed=500_000, ptype="Commercial"),
        record("1 B St", "Avon", assessed=100_000, ptype="Residential"),
        record("2 B St", "Avon", assessed=600_000, ptype="Commercial"),
    ])
    assert rows(reports.get_shared_property_types()) == [("Residential", 100_000.0)]


def test_recent_unsold(make_reports):
    reports = make_reports([
        record("1 Main St", "Avon", 2022, assessed=300_000),
        record("1 Main St", "Avon", 2022, assessed=300_000),
        record("2 Oak St", "Avon", 2021, assessed=200_000),
        record("2 Oak St", "Avon", 2021, assessed=200_000, sale=250_000),
        record("3 Elm St", "Avon", 2015, assessed=100_000),
        record("4 Pine St", "Avon", 2019, assessed=150_000),
    ])
    df = reports.get_recent_unsold(reference_date=date(2024, 6, 1))
    assert list(df.columns) == ['address', 'town', 'list_year', 'assessed_value']
    assert rows(df) == [
        ("1 Main St", "Avon", 2022, 300_000.0),
        ("4 Pine St", "Avon", 2019, 150_000.0),
    ]


def test_recent_unsold_outside_window_is_empty(make_reports):
    reports = make_reports([record("1 Main St", "Avon", 2020, assessed=300_000)])
    df = reports.get_recent_unsold(reference_date=date(2030, 1, 1))
    assert df.empty
    assert list(df.columns) == ['address', 'town', 'list_year', 'assessed_value']


def test_top_sales_rank_with_ties(make_reports):
    amounts = [900_000, 800_000, 800_000, 700_000, 600_000, 500_000, 400_000]
    records = [record(f"{i} Main St", "Avon", sale=a) for i, a in enumerate(amounts)]
    records.append(record("99 Main St", "Avon", assessed=5_000_000))
    records.append(record("1 Hill Rd", "Bolton", sale=100_000))
    df = make_reports(records).get_top_sales_by_town()

    avon = df[df['town'] == "Avon"]
    assert avon['rank_within_town'].tolist() == [1, 2, 2, 4, 5]
    assert avon['sale_amount'].is_monotonic_decreasing
    assert avon['rank_within_town'].is_monotonic_increasing
    assert rows(df[df['town'] == "Bolton"]) == [("Bolton", "1 Hill Rd", 100_000.0, 1)]
    assert (df['rank_within_town'] <= 5).all()


@pytest.fixture
def yearly_sales(make_reports):
    return make_reports([
        record("1 X St", "X", 2020, sale=90_000),
        record("2 X St", "X", 2020, sale=110_000),
        record("3 X St", "X", 2021, sale=110_000),
        record("1 Y St", "Y", 2020, sale=200_000),
        record("2 Y St", "Y", 2021, sale=150_000),
        record("3 Y St", "Y", 2021),
        record("1 Z St", "Z", 2021, sale=400_000),
        record("1 W St", "W", 2020, sale=0),
        record("2 W St", "W", 2021, sale=50_000),
    ])


def test_yoy_price_change(yearly_sales):
    df = yearly_sales.get_yoy_price_change()
    assert list(df.columns) == ['town', 'avg_2021', 'avg_2020', 'price_change', 'percent_change']
    assert df['town'].tolist() == ["X", "Y", "W"]

    x = df.iloc[0]
    assert x['avg_2020'] == 100_000
    assert x['avg_2021'] == 110_000
    assert x['price_change'] == 10_000
    assert x['percent_change'] == 10.00
    assert df.iloc[1]['percent_change'] == -25.00
    # Zero base average: row kept, percentage undefined
    assert df.iloc[2]['price_change'] == 50_000
    assert pd.isna(df.iloc[2]['percent_change'])


def test_top_appreciation(yearly_sales):
    df = yearly_sales.get_top_appreciation()
    assert list(df.columns) == ['town', 'avg_2020', 'avg_2021', 'appreciation_rate']
    assert df['town'].tolist() == ["X", "Y", "W"]
    assert df.iloc[0]['appreciation_rate'] == 10.00
    assert pd.isna(df.iloc[2]['appreciation_rate'])

    top_one = yearly_sales.get_top_appreciation(limit=1)
    assert top_one['town'].tolist() == ["X"]


def test_appreciation_with_custom_years(make_reports):
    reports = make_reports(
        [record("1 X St", "X", 2018, sale=100_000), record("2 X St", "X", 2019, sale=150_000)],
        params=ReportParameters(base_year=2018, compare_year=2019),
    )
    df = reports.get_top_appreciation()
    assert list(df.columns) == ['town', 'avg_2018', 'avg_2019', 'appreciation_rate']
    assert df.iloc[0]['appreciation_rate'] == 50.00


def test_no_town_in_both_years_is_empty(make_reports):
    reports = make_reports([record("1 Z St", "Z", 2021, sale=400_000)])
    assert reports.get_yoy_price_change().empty
    assert reports.get_top_appreciation().empty


def test_dominant_property_type_keeps_ties(make_reports):
    reports = make_reports(
        [record(f"{i} A St", "Avon", ptype="Residential") for i in range(3)]
        + [record("9 A St", "Avon", ptype="Commercial")]
        + [record(f"{i} B St", "Bolton", ptype="Residential") for i in range(2)]
        + [record(f"{i} C St", "Bolton", ptype="Condo") for i in range(2)]
        + [record(f"{i} D St", "Bolton", ptype=None) for i in range(3)]
    )
    df = reports.get_dominant_property_type()
    assert rows(df) == [
        ("Avon", "Residential", 3),
        ("Bolton", "Condo", 2),
        ("Bolton", "Residential", 2),
    ]


def test_price_buckets_partition_sales(make_reports):
    amounts = [50_000, 99_999.99, 100_000, 200_000, 200_000.5, 200_001,
               400_000, 400_001, 600_000, 600_001, 1_000_000]
    records = [record(f"{i} Main St", "Avon", sale=a) for i, a in enumerate(amounts)]
    records.append(record("unsold", "Avon", assessed=100_000))
    df = make_reports(records).get_price_buckets()

    counts = dict(zip(df['price_bucket'], df['count']))
    assert counts == {
        'Under 100K': 2,
        '100K-200K': 2,
        '200K-400K': 3,
        '400K-600K': 2,
        'Over 600K': 2,
    }
    assert df['count'].sum() == len(amounts)
    assert df['price_bucket'].tolist() == ['200K-400K', 'Under 100K', '100K-200K', '400K-600K', 'Over 600K']


def test_sales_ratio_anomalies(make_reports):
    records = [record(f"{i} A St", "Avon", ratio=1.0) for i in range(9)]
    records.append(record("outlier", "Avon", ratio=10.0))
    # Five points: the largest possible z-score is 4/sqrt(5) < 2
    records += [record(f"{i} B St", "Bolton", ratio=r) for i, r in enumerate([1, 1, 1, 1, 10])]
    records += [record(f"{i} C St", "Canton", ratio=2.0) for i in range(4)]  # zero deviation
    records.append(record("lonely", "Derby", ratio=5.0))  # undefined deviation
    records.append(record("no ratio", "Avon"))

    df = make_reports(records).get_sales_ratio_anomalies()
    assert list(df.columns) == ['town', 'address', 'sales_ratio']
    assert rows(df) == [("Avon", "outlier", 10.0)]


def test_sales_ratio_anomalies_lower_multiplier(make_reports):
    records = [record(f"{i} B St", "Bolton", ratio=r) for i, r in enumerate([1, 1, 1, 1, 10])]
    df = make_reports(records).get_sales_ratio_anomalies(stddevs=1.5)
    assert rows(df) == [("Bolton", "4 B St", 10.0)]


def test_anomalies_on_empty_table(make_reports):
    df = make_reports([]).get_sales_ratio_anomalies()
    assert df.empty
    assert list(df.columns) == ['town', 'address', 'sales_ratio']

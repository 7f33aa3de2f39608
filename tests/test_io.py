import io
from datetime import date

import pandas as pd

from erlangkit.io import (
    CONTACT_RECORD_COLUMNS,
    contact_records_frame,
    contact_records_to_csv,
    historical_data_statements,
    open_flags,
    read_interval_csv,
)
from erlangkit.simulation import ContactRecord


def _record(**overrides):
    fields = dict(
        customer_id=1,
        arrival_time=0.5,
        queue_join_time=0.5,
        queue_wait_time=0.0,
        service_start_time=0.5,
        service_end_time=1.25,
        total_time_in_system=0.75,
        server_id=0,
        was_queued=False,
        service_time=0.75,
        time_to_answer=0.0,
        channel="voice",
    )
    fields.update(overrides)
    return ContactRecord(**fields)


def test_csv_format():
    csv = contact_records_to_csv([_record()])
    assert csv == (
        ",".join(CONTACT_RECORD_COLUMNS)
        + "\n"
        + "1,voice,0.5000,0.5000,0.0000,0.5000,1.2500,0.7500,0,No,0.7500,0.0000"
    )


def test_csv_queued_flag():
    csv = contact_records_to_csv([_record(was_queued=True, queue_wait_time=0.25)])
    assert ",Yes," in csv


def test_csv_empty():
    assert contact_records_to_csv([]) == ""


def test_frame_columns():
    df = contact_records_frame([_record(), _record(customer_id=2)])
    assert list(df.columns) == CONTACT_RECORD_COLUMNS
    assert df["Customer ID"].tolist() == [1, 2]


def test_sql_statement():
    [stmt] = historical_data_statements([_record()], record_date=date(2024, 1, 2))
    assert stmt == (
        "INSERT INTO HistoricalData "
        "(campaign_id, skill_id, channel, date, interval_start, interval_end, volume, aht, abandons, asa) "
        "VALUES (NULL, NULL, 'voice', '2024-01-02', 0.5000, 1.2500, 1, 0.7500, 0, 0.0000);"
    )


def test_sql_ids_and_quoting():
    [stmt] = historical_data_statements(
        [_record(channel="it's", campaign_id=3, skill_id=8)], record_date=date(2024, 1, 2)
    )
    assert "VALUES (3, 8, 'it''s'," in stmt


def test_sql_empty():
    assert historical_data_statements([]) == []


def test_read_interval_csv_normalizes():
    raw = io.StringIO(
        "interval_start,interval_minutes,volume,aht_seconds,is_open\n"
        "2024-01-01 09:15:00,15,60,300,yes\n"
        "2024-01-01 09:00:00,15,50,300,no\n"
    )
    df = read_interval_csv(raw)
    assert pd.api.types.is_datetime64_any_dtype(df["interval_start"])
    assert df["is_open"].tolist() == [False, True]
    assert df["volume"].tolist() == [50.0, 60.0]


def test_read_interval_csv_text_and_numeric_flags():
    text = io.StringIO(
        "interval_start,interval_minutes,volume,aht_seconds,is_open\n"
        "2024-01-01 09:00:00,15,50,300,FALSE\n"
        "2024-01-01 09:15:00,15,60,300,True\n"
    )
    assert read_interval_csv(text)["is_open"].tolist() == [False, True]

    numeric = io.StringIO(
        "interval_start,interval_minutes,volume,aht_seconds,is_open\n"
        "2024-01-01 09:00:00,15,50,300,0\n"
        "2024-01-01 09:15:00,15,60,300,1\n"
    )
    assert read_interval_csv(numeric)["is_open"].tolist() == [False, True]


def test_open_flags():
    assert open_flags(pd.Series([True, False])).tolist() == [True, False]
    assert open_flags(pd.Series([1, 0, 2])).tolist() == [True, False, True]
    assert open_flags(pd.Series([1.0, None])).tolist() == [True, False]
    text = pd.Series(["false", "no", "0", " Yes ", "TRUE", "1", None])
    assert open_flags(text).tolist() == [False, False, False, True, True, True, False]

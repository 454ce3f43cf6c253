"""Shared fixtures: isolated environment, config helper, metadata CSV and PDF payloads.

All outbound HTTP is faked with httpx.MockTransport, all files live in tmp_path.
"""

import csv
import logging
import os

import httpx
import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

CSV_COLUMNS = [
    "Year",
    "Case Reference",
    "Title in English",
    "Title in Traditional Chinese",
    "Title in Simplified Chinese",
    "Organizations concerned",
    "Declared on",
    "Completed on",
    "File Path (English)",
    "File Path (Traditional Chinese)",
    "File Path (Simplified Chinese)",
    "Google Drive Link (EN)",
    "Google Drive Link (TC)",
    "Google Drive Link (SC)",
    "Report Type",
]

EN_PATH = "reports/2019/di449_en.pdf"
TC_PATH = "reports/2019/調查報告 449.pdf"
EN_LINK = "https://drive.google.com/file/d/FILEEN1/view?usp=sharing"
TC_LINK = "https://drive.google.com/file/d/FILETC1/view"
UC_PATH = "reports/2020/case 1234.pdf"
UC_LINK = "https://drive.google.com/uc?id=FILEEN2"
NO_LINK_PATH = "reports/2021/nolink.pdf"
FOREIGN_PATH = "reports/2021/elsewhere.pdf"
FOREIGN_LINK = "https://www.dropbox.com/s/abc/elsewhere.pdf"

SAMPLE_ROWS = [
    {
        "Year": "2019",
        "Case Reference": "OMB/DI/449",
        "Title in English": "Direct investigation into building safety",
        "Title in Traditional Chinese": "主動調查樓宇安全",
        "Organizations concerned": "BD",
        "Declared on": "2018-05-01",
        "Completed on": "2019-03-15",
        "File Path (English)": EN_PATH,
        "File Path (Traditional Chinese)": TC_PATH,
        "Google Drive Link (EN)": EN_LINK,
        "Google Drive Link (TC)": TC_LINK,
        "Report Type": "Direct Investigation",
    },
    {
        "Year": "2020",
        "Case Reference": "OMB 2020/1234",
        "Title in English": "Complaint against Lands Department",
        "Organizations concerned": "LandsD",
        "Declared on": "2020",
        "File Path (English)": UC_PATH,
        "Google Drive Link (EN)": UC_LINK,
        "Report Type": "Investigation",
    },
    {
        "Year": "2021",
        "Case Reference": "OMB 2021/0001",
        "Completed on": "2021-07",
        "File Path (English)": NO_LINK_PATH,
        "Report Type": "Investigation",
    },
    {
        "Year": "2021",
        "Case Reference": "OMB 2021/0002",
        "File Path (English)": FOREIGN_PATH,
        "Google Drive Link (EN)": FOREIGN_LINK,
        "Report Type": "Investigation",
    },
]

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n%%EOF\n"

ENV_KEYS = [
    "ROOT_DIR",
    "METADATA_CSV_PATH",
    "CACHE_ENGINE",
    "CACHE_TIMEOUT",
    "CACHE_LOCAL_DIR",
    "CACHE_LOCAL_MAX_BYTES",
    "CACHE_BLOB_BASE_URL",
    "CACHE_BLOB_TOKEN",
    "CACHE_BLOB_PREFIX",
    "CACHE_BLOB_MAX_BYTES",
    "FILEHOST_ENGINE",
    "FILEHOST_TIMEOUT",
    "FILEHOST_GDRIVE_BASE_URL",
    "FILEHOST_GDRIVE_ALLOWED_DOMAINS",
    "FILEHOST_GDRIVE_CONFIRM_BYPASS",
    "SITE_URL",
]


def write_metadata_csv(path, rows: list[dict]) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate every test from the developer's environment."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROOT_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("tests")))


@pytest.fixture
def metadata_csv(tmp_path) -> str:
    path = os.path.join(tmp_path, "public", "reports_table.csv")
    write_metadata_csv(path, SAMPLE_ROWS)
    return path


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES


def pdf_response(content: bytes = PDF_BYTES) -> httpx.Response:
    return httpx.Response(200, content=content, headers={"content-type": "application/pdf"})


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=body, headers={"content-type": "text/html; charset=utf-8"})

"""국토교통부 아파트 매매 실거래가 API 클라이언트"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from datetime import date
from urllib.parse import quote, unquote, urlencode

import httpx

from app.config import settings
from app.schemas.apartment import ApartmentGroup, ApartmentKey, TransactionRecord

logger = logging.getLogger(__name__)

MOLIT_BASE_URL = "https://apis.data.go.kr/1613000"
APT_TRADE_ENDPOINT = "/RTMSDataSvcAptTrade/getRTMSDataSvcAptTrade"

PAGE_SIZE = 1000
MAX_PAGES = 10


class TradeDataError(Exception):
    """실거래가 API 조회 실패 (키 미설정, 네트워크 오류, 오류 응답)"""


def _parse_int(text: str | None) -> int:
    """숫자 문자열을 정수로 변환한다. 쉼표/공백은 무시한다."""
    raw = (text or "0").strip().replace(",", "")
    try:
        return int(raw)
    except ValueError:
        return 0


def _parse_float(text: str | None) -> float:
    """숫자 문자열을 float로 변환한다."""
    raw = (text or "0").strip()
    try:
        return float(raw)
    except ValueError:
        return 0.0


def _text(item: ET.Element, *tag_names: str) -> str:
    """여러 태그명 중 첫 번째로 값이 있는 것을 반환한다 (한글/영어 호환)."""
    for tag in tag_names:
        val = (item.findtext(tag) or "").strip()
        if val:
            return val
    return ""


def parse_xml_response(xml_text: str, region_code: str = "") -> list[ApartmentGroup]:
    """MOLIT 아파트 매매 XML 응답을 단지별 ApartmentGroup 리스트로 변환한다.

    단지 순서는 응답에 처음 등장한 순서를 따르고, 단지 내 거래는 최신순으로 정렬한다.

    Raises:
        TradeDataError: XML 파싱 실패 또는 resultCode 오류
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise TradeDataError(f"실거래가 응답 파싱 실패: {exc}") from exc

    result_code = (root.findtext(".//header/resultCode") or "").strip()
    if result_code and result_code not in ("00", "000"):
        result_msg = (root.findtext(".//header/resultMsg") or "").strip()
        raise TradeDataError(f"실거래가 API 오류 [{result_code}] {result_msg}")

    return group_transactions(_iter_rows(root), region_code)


def _iter_rows(root: ET.Element) -> list[tuple[dict, TransactionRecord]]:
    rows: list[tuple[dict, TransactionRecord]] = []
    for item in root.findall(".//item"):
        info = {
            "apt_name": _text(item, "aptNm", "아파트", "단지명"),
            "dong": _text(item, "umdNm", "법정동"),
            "jibun": _text(item, "jibun", "지번"),
            "build_year": _parse_int(_text(item, "buildYear", "건축년도")),
            "region_code": _text(item, "sggCd", "지역코드"),
        }
        record = TransactionRecord(
            deal_year=_parse_int(_text(item, "dealYear", "년")),
            deal_month=_parse_int(_text(item, "dealMonth", "월")),
            deal_day=_parse_int(_text(item, "dealDay", "일")),
            price=_parse_int(_text(item, "dealAmount", "거래금액")),
            area=_parse_float(_text(item, "excluUseAr", "전용면적")),
            floor=_parse_int(_text(item, "floor", "층")),
            apt_dong=_text(item, "aptDong", "동"),
        )
        rows.append((info, record))
    return rows


def group_transactions(
    rows: list[tuple[dict, TransactionRecord]],
    region_code: str = "",
) -> list[ApartmentGroup]:
    """(단지정보, 거래) 목록을 단지 키 (단지명, 법정동, 지번) 기준으로 묶는다."""
    infos: dict[ApartmentKey, dict] = {}
    grouped: dict[ApartmentKey, list[TransactionRecord]] = {}
    for info, record in rows:
        if not info["apt_name"]:
            continue
        key = (info["apt_name"], info["dong"], info["jibun"])
        if key not in infos:
            infos[key] = info
            grouped[key] = []
        grouped[key].append(record)

    groups: list[ApartmentGroup] = []
    for key, info in infos.items():
        txns = sorted(grouped[key], key=lambda t: (t.deal_year, t.deal_month, t.deal_day), reverse=True)
        groups.append(
            ApartmentGroup(
                apt_name=info["apt_name"],
                dong=info["dong"],
                jibun=info["jibun"],
                build_year=info["build_year"],
                region_code=region_code or info["region_code"],
                transactions=tuple(txns),
            )
        )
    return groups


def merge_groups(batches: list[list[ApartmentGroup]]) -> list[ApartmentGroup]:
    """여러 달의 조회 결과를 단지 키 기준으로 병합한다."""
    merged: dict[ApartmentKey, ApartmentGroup] = {}
    for batch in batches:
        for group in batch:
            existing = merged.get(group.key)
            if existing is None:
                merged[group.key] = group
                continue
            txns = sorted(
                existing.transactions + group.transactions,
                key=lambda t: (t.deal_year, t.deal_month, t.deal_day),
                reverse=True,
            )
            merged[group.key] = existing.with_transactions(tuple(txns))
    return list(merged.values())


def recent_year_months(months: int, today: date | None = None) -> list[str]:
    """오늘 기준 최근 N개월의 YYYYMM 목록 (최신순)"""
    today = today or date.today()
    year, month = today.year, today.month
    result: list[str] = []
    for _ in range(months):
        result.append(f"{year:04d}{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return result


def _build_url(region_code: str, year_month: str, page_no: int) -> str:
    # serviceKey의 +, /, = 등 특수문자를 percent-encoding 처리
    raw_key = unquote(settings.molit_api_key)
    encoded_key = quote(raw_key, safe="")
    other_params = urlencode({
        "LAWD_CD": region_code,
        "DEAL_YMD": year_month,
        "pageNo": page_no,
        "numOfRows": PAGE_SIZE,
    })
    return f"{MOLIT_BASE_URL}{APT_TRADE_ENDPOINT}?serviceKey={encoded_key}&{other_params}"


async def fetch_apartments(
    region_code: str,
    year_month: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ApartmentGroup]:
    """지역코드 + 계약년월로 아파트 매매 실거래를 조회한다.

    Args:
        region_code: 법정동코드 5자리 (시군구)
        year_month: 계약년월 (YYYYMM)

    Raises:
        TradeDataError: 키 미설정, 네트워크 오류, API 오류 응답
    """
    if not settings.molit_api_key:
        raise TradeDataError("MOLIT_API_KEY가 설정되지 않았습니다.")

    batches: list[list[ApartmentGroup]] = []
    try:
        async with httpx.AsyncClient(timeout=settings.trade_api_timeout, transport=transport) as client:
            for page_no in range(1, MAX_PAGES + 1):
                response = await client.get(_build_url(region_code, year_month, page_no))
                response.raise_for_status()
                batches.append(parse_xml_response(response.text, region_code))

                total_count = _parse_int(ET.fromstring(response.text).findtext(".//body/totalCount"))
                if page_no * PAGE_SIZE >= total_count:
                    break
    except httpx.HTTPError as exc:
        raise TradeDataError(f"실거래가 API 호출 실패: {exc}") from exc

    groups = merge_groups(batches)
    logger.debug("MOLIT API [%s] %s: %d개 단지", year_month, region_code, len(groups))
    return groups


async def fetch_apartments_by_keyword(
    region_code: str,
    keyword: str,
    months: int | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[ApartmentGroup]:
    """최근 N개월간 단지명에 keyword가 포함된 거래를 병렬로 수집한다.

    일부 월 조회 실패는 경고만 남기고 건너뛰며, 모든 월이 실패하면 TradeDataError를 올린다.
    """
    months = months or settings.keyword_search_months
    year_months = recent_year_months(months)
    sem = asyncio.Semaphore(6)

    async def fetch_one(year_month: str) -> list[ApartmentGroup] | None:
        async with sem:
            try:
                return await fetch_apartments(region_code, year_month, transport=transport)
            except TradeDataError as exc:
                logger.warning("MOLIT API 호출 실패 [%s] %s: %s", year_month, region_code, exc)
                return None

    results = await asyncio.gather(*[fetch_one(ym) for ym in year_months])
    batches = [r for r in results if r is not None]
    if not batches:
        raise TradeDataError(f"최근 {months}개월 실거래가 조회에 모두 실패했습니다.")

    needle = keyword.strip()
    matched = [[g for g in batch if needle in g.apt_name] for batch in batches]
    groups = merge_groups(matched)
    logger.info("키워드 검색 '%s' (%s, 최근 %d개월): %d개 단지", needle, region_code, months, len(groups))
    return groups

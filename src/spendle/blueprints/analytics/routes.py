"""Analytics routes backing the monthly and yearly charts."""

from __future__ import annotations

from flask import jsonify, request

from ...extensions import get_context
from ...services import reports
from ..common import current_identity, parse_int, parse_month
from . import bp


@bp.get("/monthly")
def monthly():
    end_month = parse_month(request.args.get("month"))
    months = parse_int(request.args.get("months"), field="months", default=reports.DEFAULT_MONTHS)
    series = reports.monthly_series(
        get_context(), current_identity(), end_month=end_month, months=months  # type: ignore[arg-type]
    )
    return jsonify({"months": [point.to_dict() for point in series]})


@bp.get("/yearly")
def yearly():
    end_year = parse_int(request.args.get("year"), field="year")
    years = parse_int(request.args.get("years"), field="years", default=reports.DEFAULT_YEARS)
    series = reports.yearly_series(
        get_context(), current_identity(), end_year=end_year, years=years  # type: ignore[arg-type]
    )
    return jsonify({"years": [point.to_dict() for point in series]})

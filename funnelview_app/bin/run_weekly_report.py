import argparse
import json
import logging

from funnelview_app.dashboard_config.config_parser import load_dashboard_config
from funnelview_app.dashboard_config.config_service import DashboardConfigService
from funnelview_app.intelligence_engine.caching_service import PatternCacheService
from funnelview_app.intelligence_engine.clock import FixedClock, SystemClock
from funnelview_app.intelligence_engine.patterns_manager import PatternsManager
from funnelview_app.intelligence_engine.primitives.period_index import ReferenceMode
from funnelview_app.query_manager.local_csv_query_manager import LocalCSVQueryManager


def main() -> int:
    parser = argparse.ArgumentParser(description="Print the weekly traffic breakdown for one dimension.")
    parser.add_argument("--config", default="funnelview_app/config/dashboard.toml", help="Dashboard TOML config.")
    parser.add_argument("--data", default="local_data", help="Folder with {table_id}.csv files.")
    parser.add_argument("--dimension", default="source_medium", help="Dimension id, e.g. channel, source, campaign.")
    parser.add_argument("--metric", default="sessions", choices=["sessions", "demo_submit", "vf_signup"])
    parser.add_argument("--grain", default=None, choices=["week", "month"], help="Defaults to the engine grain.")
    parser.add_argument("--reference", default=ReferenceMode.LATEST.value, choices=[m.value for m in ReferenceMode])
    parser.add_argument("--search", default="")
    parser.add_argument("--top-n", type=int, default=None)
    parser.add_argument("--include-zero", action="store_true")
    parser.add_argument("--now", default=None, help="Evaluate as of this timestamp instead of the wall clock.")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # 1. Load dashboard config
    config_svc = DashboardConfigService()
    config_svc.load_config(load_dashboard_config(args.config))
    config_svc.validate_config()
    engine = config_svc.get_config().engine
    grain = args.grain or engine.grain

    # 2. Fetch rows and ignore rules
    query_mgr = LocalCSVQueryManager(data_folder=args.data)
    table, dimension = config_svc.resolve_dimension(args.dimension, grain)
    rows = query_mgr.fetch_metric_rows(
        table, dimension, engine.history_periods, engine.page_size, engine.max_pages
    )
    rules = query_mgr.fetch_ignore_rules()

    # 3. Run patterns
    clock = FixedClock(args.now) if args.now else SystemClock(engine.timezone)
    manager = PatternsManager(PatternCacheService(), clock)
    outputs = manager.run_patterns_for_metric(
        args.metric,
        rows,
        {"grain": grain},
        reference_mode=args.reference,
        search=args.search,
        top_n=args.top_n if args.top_n is not None else engine.top_n,
        include_zero=args.include_zero,
        rules=rules,
        series_length=engine.series_length,
        movers_limit=engine.movers_limit,
        grace_days=engine.grace_days,
    )

    print(json.dumps([o.to_dict() for o in outputs], indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""
Main CLI Entry Point

Cap-arrangement screening CLI: list panels, score an arrangement, convert colors.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cvscreen.core.arrangement_scorer import ArrangementScorer, InvalidSequence
from cvscreen.core.cap_dataset import DATASET_VERSION, PANELS, dataset_fingerprint
from cvscreen.data.config_manager import load_scoring_criteria
from cvscreen.schemas.score_schemas import ScoreRequest, ScoreResultSchema
from cvscreen.utils.color_space import lab_to_hex, lab_to_srgb, lab_to_xyz, srgb_to_lab, srgb_to_xyz
from cvscreen.utils.file_io import read_json, write_json


def setup_logging(debug: bool = False):
    """Logging to stdout"""
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True
    )


def parse_order(raw: List[str]) -> List[str]:
    """Accept space- and/or comma-separated cap ids."""
    caps = []
    for chunk in raw:
        caps.extend(part.strip() for part in chunk.split(',') if part.strip())
    return caps


def cmd_panels(args) -> int:
    """List panels and their caps"""
    if args.json:
        payload = {
            'dataset_version': DATASET_VERSION,
            'fingerprint': dataset_fingerprint(),
            'panels': {
                panel_type.value: [
                    {'cap_id': cap.cap_id, 'lab': list(cap.lab), 'is_fixed': cap.is_fixed, 'hex': lab_to_hex(cap.lab)}
                    for cap in panel.caps
                ]
                for panel_type, panel in PANELS.items()
            },
        }
        print(json.dumps(payload, indent=2))
        return 0

    print(f"Dataset version: {DATASET_VERSION}")
    print(f"Fingerprint:     {dataset_fingerprint()}")
    for panel_type, panel in PANELS.items():
        print(f"\n  {panel_type.value} ({len(panel.movable_caps)} movable caps)")
        for cap in panel.caps:
            L, a, b = cap.lab
            marker = 'fixed' if cap.is_fixed else ''
            print(f"    {cap.cap_id:<16} L*={L:6.2f} a*={a:7.2f} b*={b:7.2f}  {lab_to_hex(cap.lab)}  {marker}")
    return 0


def load_request(args) -> ScoreRequest:
    """Build the score request from --request JSON or --panel/--order."""
    if args.request:
        path = Path(args.request)
        if not path.exists():
            raise FileNotFoundError(f"Request file not found: {path}")
        return ScoreRequest.model_validate(read_json(path))
    return ScoreRequest(panel_type=args.panel, cap_sequence=parse_order(args.order or []))


def cmd_score(args) -> int:
    """Score one arrangement"""
    logger = logging.getLogger(__name__)

    criteria = load_scoring_criteria(args.config)
    scorer = ArrangementScorer(criteria)
    request = load_request(args)

    result = scorer.score_request(request)
    payload = ScoreResultSchema.from_result(result, fingerprint=dataset_fingerprint(result.panel_type))

    if args.output:
        write_json(payload.model_dump(mode='json'), Path(args.output))
        logger.info(f"Result saved to {args.output}")

    print("\n" + "=" * 60)
    print("  Arrangement Score")
    print("=" * 60)
    print(f"  Panel:          {result.panel_type.value}")
    print(f"  Classification: {result.classification.value}")
    print(f"  Severity:       {result.severity.value}")
    print(f"  Total error:    {result.total_error:.2f}")
    print(f"  Confusion axis: {result.confusion_angle_degrees:.1f}° (offset {result.axis_offset_degrees:.1f}°)")
    print(f"  C-index:        {result.confusion_index:.2f}")
    print(f"  Crossings:      {len(result.crossings)}")
    print(f"  Score:          {result.arrangement_score}")
    print("=" * 60)
    return 0


def cmd_convert(args) -> int:
    """Color conversion helper"""
    if args.rgb:
        lab = srgb_to_lab(args.rgb)
        xyz = srgb_to_xyz(args.rgb)
        rgb = tuple(args.rgb)
    else:
        lab = tuple(args.lab)
        xyz = lab_to_xyz(lab)
        rgb = lab_to_srgb(lab)

    print(f"  RGB: {tuple(int(round(c)) for c in rgb)}")
    print(f"  XYZ: ({xyz[0]:.4f}, {xyz[1]:.4f}, {xyz[2]:.4f})")
    print(f"  Lab: ({lab[0]:.4f}, {lab[1]:.4f}, {lab[2]:.4f})")
    print(f"  Hex: {lab_to_hex(lab)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Color-Vision Cap Arrangement Screening',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # panels
    panels_parser = subparsers.add_parser('panels', help='List reference panels')
    panels_parser.add_argument('--json', action='store_true', help='Print as JSON')

    # score
    score_parser = subparsers.add_parser(
        'score',
        help='Score a cap arrangement',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Example:
  cvscreen score --panel D15 --order D15_01,D15_15,D15_02,D15_03,...
  cvscreen score --request arrangement.json
'''
    )
    score_parser.add_argument('--panel', choices=[p.value for p in PANELS], help='Panel type')
    score_parser.add_argument('--order', nargs='+', help='Movable cap ids in placed order')
    score_parser.add_argument('--request', help='JSON file with panel_type and cap_sequence (instead of --panel/--order)')
    score_parser.add_argument('--config', type=Path, help='Scoring config JSON (default: <repo>/config/scoring.json)')
    score_parser.add_argument('--output', help='Output JSON file path')

    # convert
    convert_parser = subparsers.add_parser('convert', help='Convert a color between sRGB and Lab')
    group = convert_parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--rgb', type=float, nargs=3, metavar=('R', 'G', 'B'), help='sRGB 0~255')
    group.add_argument('--lab', type=float, nargs=3, metavar=('L', 'A', 'B'), help='CIE L*a*b*')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug)
    logger = logging.getLogger(__name__)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == 'panels':
            return cmd_panels(args)
        elif args.command == 'score':
            return cmd_score(args)
        elif args.command == 'convert':
            return cmd_convert(args)

    except InvalidSequence as e:
        logger.error(f"Invalid sequence: {e}")
        return 2

    except ValueError as e:
        # pydantic ValidationError from a malformed request or scoring config
        logger.error(f"Invalid input: {e}")
        return 1

    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    return 0


if __name__ == '__main__':
    sys.exit(main())

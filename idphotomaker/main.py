#!/usr/bin/env python3
"""
ID Photo Maker - command line entry point

    python -m idphotomaker.main input/photo.jpg --size two-inch --paper a4 --color blue
"""

import os
import sys
import asyncio
import argparse
import warnings

# Suppress warnings
os.environ['ORT_LOGGING_LEVEL'] = '3'
warnings.filterwarnings('ignore')

from .config import (
    OUTPUT_BASE, DPI, DPI_THRESHOLD, DEFAULT_SIZE, DEFAULT_PAPER, DEFAULT_BACKGROUND,
    BACKGROUND_COLORS, SIZES, PAPERS,
)
from .layout import Margins
from .processor import ProcessingPipeline
from .utils import GPUInfo, print_summary


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='idphotomaker',
        description='Create a print-ready ID photo and photo sheet from a portrait.',
    )
    parser.add_argument('image', help='Input image (JPEG, PNG or WebP)')
    parser.add_argument('--size', default=DEFAULT_SIZE, choices=SIZES.keys(), help='Photo size')
    parser.add_argument('--paper', default=DEFAULT_PAPER, choices=PAPERS.keys(), help='Sheet paper')
    parser.add_argument(
        '--color', default=DEFAULT_BACKGROUND,
        help=f"Background color: '#RRGGBB' or one of {', '.join(BACKGROUND_COLORS)}",
    )
    parser.add_argument(
        '--margins', type=float, nargs=4, default=None, metavar=('TOP', 'BOTTOM', 'LEFT', 'RIGHT'),
        help='Printer margins in mm',
    )
    parser.add_argument('--dpi', type=int, default=DPI_THRESHOLD, help='Minimum print DPI')
    parser.add_argument('--cutting-marks', action='store_true', help='Draw cutting marks on the sheet')
    parser.add_argument('--output-dir', default=OUTPUT_BASE, help='Directory for the generated files')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    print("="*70)
    print("ID PHOTO MAKER")
    print("Validate -> Face -> Crop -> Background -> Exact size -> Sheet")
    print("="*70)

    GPUInfo.print_info()

    if not os.path.exists(args.image):
        print(f"\nError: Could not find {args.image}")
        return 2

    print(f"\nInput: {args.image}")
    margins = Margins(*args.margins) if args.margins else None
    color = BACKGROUND_COLORS.get(args.color, args.color)

    print("\nInitializing models...")
    pipeline = ProcessingPipeline(cutting_marks=args.cutting_marks)
    try:
        pipeline.load_models()
        result = asyncio.run(pipeline.run(
            args.image, args.size, color, args.paper, margins=margins, dpi_threshold=args.dpi,
        ))
    except ValueError as e:
        print(f"\nError: {e}")
        return 2
    finally:
        pipeline.close()

    outputs = {}
    if result.succeeded:
        os.makedirs(args.output_dir, exist_ok=True)
        stem = os.path.splitext(os.path.basename(args.image))[0]

        photo_path = os.path.join(args.output_dir, f"{stem}_{args.size}.png")
        result.photo_preview.save(photo_path, 'PNG', dpi=(args.dpi, args.dpi), icc_profile=result.photo_preview.info.get('icc_profile'))
        outputs[f"{result.size_spec.description} photo"] = photo_path

        sheet_path = os.path.join(args.output_dir, f"{stem}_{args.size}_{args.paper}_sheet.png")
        result.sheet_preview.save(sheet_path, 'PNG', dpi=(DPI, DPI), icc_profile=result.sheet_preview.info.get('icc_profile'))
        plan = result.layout
        outputs[f"{result.paper_spec.label} sheet, {plan.total_count} copies"] = sheet_path

    print_summary(result, outputs)
    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())

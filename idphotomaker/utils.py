"""
Utility functions
"""

import os
from typing import Dict, Optional


def _torch():
    try:
        import torch
    except ImportError:
        return None
    return torch


class GPUInfo:
    """CUDA device diagnostics for logs and the health endpoint."""

    @staticmethod
    def is_available() -> bool:
        torch = _torch()
        return torch is not None and torch.cuda.is_available()

    @staticmethod
    def get_info() -> Dict:
        cpu_count = os.cpu_count() or 1
        if not GPUInfo.is_available():
            return {'available': False, 'device': 'CPU', 'cpu_count': cpu_count}

        torch = _torch()
        gib = 1024 ** 3
        info = {
            'available': True,
            'device': 'CUDA',
            'name': torch.cuda.get_device_name(0),
            'vram_total_gb': round(torch.cuda.get_device_properties(0).total_memory / gib, 1),
            'vram_allocated_gb': round(torch.cuda.memory_allocated(0) / gib, 2),
            'cpu_count': cpu_count,
        }
        try:
            info['vram_free_gb'] = round(torch.cuda.mem_get_info()[0] / gib, 1)
        except RuntimeError:
            pass
        return info

    @staticmethod
    def print_info() -> None:
        info = GPUInfo.get_info()
        if not info['available']:
            print(f"Device: CPU ({info['cpu_count']} cores, {performance_class(info['cpu_count'])} performance)")
            return
        print(f"Device: {info['name']}")
        print(f"  VRAM: {info['vram_allocated_gb']} / {info['vram_total_gb']} GB allocated")


def performance_class(cores: Optional[int] = None) -> str:
    """Classify the host by CPU cores: high (>4), medium (3-4), low (<=2)."""
    if cores is None:
        cores = os.cpu_count() or 2
    if cores > 4:
        return 'high'
    if cores >= 3:
        return 'medium'
    return 'low'


def print_summary(result, outputs: Dict[str, str]) -> None:
    """Print final summary of a pipeline run and the files written"""
    print("\n" + "="*70)
    if result.succeeded:
        print("SUCCESS! ID PHOTO CREATED")
    else:
        print(f"FAILED at {result.failed_stage.value}: {result.error.message}")
    print("="*70)

    for warning in result.warnings:
        print(f"  Warning: {warning}")

    if result.layout is not None:
        plan = result.layout
        print(f"\n  Sheet: {plan.paper_key}, {plan.columns}x{plan.rows} = {plan.total_count} copies")

    if outputs:
        print("\nOutput files:")
        for num, (label, path) in enumerate(outputs.items(), start=1):
            print(f"  {num}. {path}")
            print(f"     - {label}")

    print("="*70)

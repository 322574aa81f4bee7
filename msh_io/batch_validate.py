#!/usr/bin/env python3
"""
Batch Validation for MSH Files

Parses every .msh file under the given paths and reports, per file:
1. File parsing (no exceptions)
2. Cross references (material indices, parents, envelopes, bone hashes)
3. Vertex bounding box of all mesh nodes

Run: msh-validate [paths...]
"""

import argparse
import glob
import logging
import os
import sys
from typing import Dict, List, Optional

import numpy as np

from .importers.import_msh import MSHDocument


def find_msh_files(paths: List[str]) -> List[str]:
    """Expand directories into the .msh files below them"""
    files = []
    for path in paths:
        if os.path.isdir(path):
            files.extend(glob.glob(os.path.join(path, '**', '*.msh'), recursive=True))
            files.extend(glob.glob(os.path.join(path, '**', '*.MSH'), recursive=True))
        else:
            files.append(path)
    return sorted(set(files))


def validate_msh(msh_path: str) -> Dict:
    """Validate a single MSH file."""
    result = {
        'path': msh_path,
        'status': 'UNKNOWN',
        'errors': [],
        'warnings': [],
        'model_count': 0,
        'material_count': 0,
        'vertex_count': 0,
        'bounds': None,
    }

    try:
        document = MSHDocument.read(msh_path)
    except (OSError, ValueError) as e:
        result['status'] = 'FAIL'
        result['errors'].append(f"MSH parse error: {e}")
        return result

    result['model_count'] = len(document.models)
    result['material_count'] = len(document.materials)

    if not document.models:
        result['status'] = 'FAIL'
        result['errors'].append("No models found")
        return result

    positions = [n.mesh.positions for n in document.nodes if n.mesh is not None and len(n.mesh.positions)]
    if positions:
        all_verts = np.concatenate(positions)
        result['vertex_count'] = len(all_verts)
        min_xyz = all_verts.min(axis=0)
        max_xyz = all_verts.max(axis=0)
        result['bounds'] = {
            'min': min_xyz.tolist(),
            'max': max_xyz.tolist(),
            'size': (max_xyz - min_xyz).tolist(),
        }
        if not np.isfinite(all_verts).all():
            result['warnings'].append("Non-finite vertex positions")

    result['warnings'].extend(document.issues)
    result['status'] = 'WARN' if result['warnings'] else 'PASS'
    return result


def _format_size(bounds: Optional[Dict]) -> str:
    if bounds is None:
        return "no geometry"
    return "size=" + "x".join(f"{v:.1f}" for v in bounds['size'])


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog='msh-validate', description="Validate Zero Engine .msh files")
    parser.add_argument('paths', nargs='*', default=['.'], help="files or directories to scan")
    parser.add_argument('-v', '--verbose', action='store_true', help="log every reported issue")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING if args.verbose else logging.ERROR,
                        format='%(levelname)s %(name)s: %(message)s')

    print("=" * 80)
    print("BATCH MSH VALIDATION")
    print("=" * 80)

    msh_files = find_msh_files(args.paths)
    print(f"Found {len(msh_files)} MSH files")

    results = {
        'PASS': [],
        'WARN': [],
        'FAIL': [],
        'UNKNOWN': [],
    }

    for i, msh_path in enumerate(msh_files):
        print(f"[{i + 1}/{len(msh_files)}] {msh_path}... ", end='', flush=True)
        result = validate_msh(msh_path)
        status = result['status']
        counts = f"models={result['model_count']} materials={result['material_count']} verts={result['vertex_count']}"

        if status == 'PASS':
            print(f"PASS {counts} {_format_size(result['bounds'])}")
        elif status == 'WARN':
            print(f"WARN {counts} ({len(result['warnings'])} warnings)")
        else:
            print(f"FAIL {result['errors']}")

        results[status].append(result)

    # Summary
    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print(f"PASS: {len(results['PASS'])}")
    print(f"WARN: {len(results['WARN'])}")
    print(f"FAIL: {len(results['FAIL'])}")

    if results['FAIL']:
        print("\n--- FAILED FILES ---")
        for r in results['FAIL']:
            print(f"  {r['path']}: {r['errors']}")

    if results['WARN']:
        print("\n--- WARNING FILES ---")
        for r in results['WARN']:
            print(f"  {r['path']}: {r['warnings']}")

    return 1 if results['FAIL'] else 0


if __name__ == '__main__':
    sys.exit(main())

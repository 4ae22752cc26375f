"""
Environment frame graph export
Writes the frames an Evaluator created as a Graphviz DOT digraph: one box
per frame listing its bindings, one edge from each frame to its parent.
"""

import subprocess
from typing import Dict, List, Sequence


def escape_label(text: str) -> str:
    """Escape text for a left-justified DOT label"""
    return text.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\l')


def frame_label(frame) -> str:
    entries = [f"{name}: {value.stringify()}" for name, value in frame.bindings.items()]
    return "\\l".join(escape_label(entry) for entry in entries) + "\\l"


def create_environment_dot(frames: Sequence) -> str:
    """
    Build the DOT text for frames.

    Node names follow the order frames are first met (Env0, Env1, ...); each
    parent edge is labelled with the position of the child in frames.
    """
    names: Dict[int, str] = {}

    def node_name(frame) -> str:
        key = id(frame)
        if key not in names:
            names[key] = f"Env{len(names)}"
        return names[key]

    lines: List[str] = ['digraph Environment {', '  rankdir="BT";']
    for index, frame in enumerate(frames):
        current = node_name(frame)
        lines.append(f'  {current} [label="{frame_label(frame)}" shape="box"];')
        if frame.parent is not None:
            lines.append(f'  {current} -> {node_name(frame.parent)} [label="Env{index}"];')
    lines.append('}')
    return '\n'.join(lines) + '\n'


def write_dot(dot: str, path: str) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dot)


def render_dot(dot_path: str, output_path: str, fmt: str = "pdf") -> None:
    """Render a DOT file with Graphviz; raises FileNotFoundError when `dot` is not installed"""
    subprocess.run(["dot", f"-T{fmt}", dot_path, "-o", output_path], check=True)

"""Node-type visualisation on a constant-k plane."""

import logging

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns
from matplotlib.colors import ListedColormap

from .flags import NodeType

log = logging.getLogger(__name__)

NODE_COLORS = {
    NodeType.BOUNDARY: "#bdbdbd",
    NodeType.FLUID: "#deebf7",
    NodeType.SOLID: "#636363",
    NodeType.GHOST: "#e6550d",
    NodeType.SOLID_WITH_GHOST: "#fdae6b",
}


def plot_flag_slice(flags, space, k, encoding, ax=None, output_path=None):
    """Plot node types of plane k (extended index space).

    Parameters
    ----------
    flags : np.ndarray
        Flat node flags.
    space : Space
    k : int
        Plane index in [0, kMax).
    encoding : FlagEncoding
    ax : matplotlib.axes.Axes, optional
        Axes to draw on; a new figure is created if omitted.
    output_path : Path, optional
        If given, the figure is saved there.

    Returns
    -------
    matplotlib.figure.Figure
    """
    if not 0 <= k < space.kMax:
        raise ValueError(f"plane k={k} outside [0, {space.kMax})")

    kinds = encoding.kinds(flags).reshape(space.shape)[k]
    cmap = ListedColormap([NODE_COLORS[t] for t in NodeType])

    sns.set_style("white")

    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6))
    else:
        fig = ax.figure

    ax.imshow(kinds, origin="lower", cmap=cmap, vmin=-0.5, vmax=len(NodeType) - 0.5,
              interpolation="nearest")
    ax.set_xlabel("i")
    ax.set_ylabel("j")
    ax.set_title(f"Node types, k = {k}")

    handles = [plt.Rectangle((0, 0), 1, 1, color=NODE_COLORS[t]) for t in NodeType]
    ax.legend(handles, [t.name.lower().replace("_", " ") for t in NodeType],
              loc="upper right", fontsize="small", framealpha=0.8)

    counts = np.bincount(kinds.ravel(), minlength=len(NodeType))
    log.debug(f"Plane k={k}: " + ", ".join(f"{t.name}={counts[t]}" for t in NodeType))

    if output_path is not None:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        log.info(f"Saved flag slice: {output_path}")
    return fig

"""
Visualization tools for simulation results using Plotly.

Draws the trust graph produced by a topology build and heatmaps of sweep
results over (byzantine count, overlap factor).
"""

from typing import Any, Dict, List, Optional, Tuple
import os

import networkx as nx
import numpy as np
import plotly.graph_objects as go

from .topology import ByzantineTopology


class Visualizer:
    """
    Visualization generator for topologies and sweep results.

    Every plot method returns the Plotly figure; pass `output_file` to save
    it (HTML, or any static format Plotly's image export supports).
    """

    def __init__(self):
        self.color_scheme = {
            'honest': '#3498db',     # Blue
            'byzantine': '#e74c3c',  # Red
            'common': '#2ecc71',     # Green
        }

    def _save(self, fig: go.Figure, output_file: Optional[str], show: bool, what: str):
        if output_file:
            directory = os.path.dirname(output_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            if output_file.endswith('.html'):
                fig.write_html(output_file)
            else:
                fig.write_image(output_file, width=1200, height=800)
            print(f"Saved {what} plot to {output_file}")

        if show:
            fig.show()

    def create_trust_graph(self, topology: ByzantineTopology) -> nx.DiGraph:
        """
        Build a directed graph with an edge p -> q whenever p trusts q.

        Node attributes: `byzantine` and `common` (member of the common UNL).
        """
        G = nx.DiGraph()
        for peer in topology.network:
            G.add_node(
                peer.id,
                byzantine=peer.byzantine,
                common=peer in topology.common_unl
            )
        for peer_id, unl in topology.unls.items():
            for trusted in unl:
                G.add_edge(peer_id, trusted.id)
        return G

    def node_color(self, attrs: Dict[str, Any]) -> str:
        if attrs.get('byzantine'):
            return self.color_scheme['byzantine']
        if attrs.get('common'):
            return self.color_scheme['common']
        return self.color_scheme['honest']

    def plot_trust_topology(
        self,
        topology: ByzantineTopology,
        output_file: Optional[str] = None,
        show: bool = False,
        seed: int = 42
    ) -> go.Figure:
        """
        Plot the trust graph.

        Byzantine peers are red, honest members of the common UNL green,
        other honest peers blue. Node size grows with how many peers trust it.
        """
        G = self.create_trust_graph(topology)
        pos = nx.spring_layout(G, seed=seed)

        edge_x: List[Optional[float]] = []
        edge_y: List[Optional[float]] = []
        for u, v in G.edges():
            if u == v:
                continue
            x0, y0 = pos[u]
            x1, y1 = pos[v]
            edge_x.extend([x0, x1, None])
            edge_y.extend([y0, y1, None])

        edge_trace = go.Scatter(
            x=edge_x,
            y=edge_y,
            line=dict(width=0.5, color='#888'),
            hoverinfo='none',
            mode='lines',
            opacity=0.3
        )

        node_x, node_y, node_text, node_colors, node_sizes = [], [], [], [], []
        for node, attrs in G.nodes(data=True):
            x, y = pos[node]
            node_x.append(x)
            node_y.append(y)
            trusted_by = G.in_degree(node)
            kind = 'byzantine' if attrs['byzantine'] else 'honest'
            node_text.append(
                f'Peer {node} ({kind})<br>UNL size: {G.out_degree(node)}<br>Trusted by: {trusted_by}'
            )
            node_colors.append(self.node_color(attrs))
            node_sizes.append(8 + 2 * np.sqrt(trusted_by))

        node_trace = go.Scatter(
            x=node_x,
            y=node_y,
            mode='markers',
            hoverinfo='text',
            text=node_text,
            marker=dict(
                color=node_colors,
                size=node_sizes,
                line_width=2,
                line_color='white'
            )
        )

        params = topology.params
        fig = go.Figure(
            data=[edge_trace, node_trace],
            layout=go.Layout(
                title=dict(
                    text=(
                        f'Trust Topology (peers={params.num_peers}, byzantines={params.num_byzantines}, '
                        f'overlap={params.overlap:.2f}, common UNL={len(topology.common_unl)})'
                    ),
                    font=dict(size=16)
                ),
                showlegend=False,
                hovermode='closest',
                margin=dict(b=0, l=0, r=0, t=40),
                xaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
                yaxis=dict(showgrid=False, zeroline=False, showticklabels=False),
                template='plotly_white',
                height=800,
                width=1200
            )
        )

        self._save(fig, output_file, show, "trust topology")
        return fig

    def sweep_grid(
        self,
        rows: List[Dict[str, Any]],
        metric: str
    ) -> Tuple[List[int], List[float], np.ndarray]:
        """
        Arrange sweep rows into a (byzantines x overlap) grid of `metric`.

        Failed combinations, or rows missing the metric, are NaN.
        """
        byzantines = sorted({r['byzantines'] for r in rows})
        overlaps = sorted({round(r['overlap'], 10) for r in rows})
        grid = np.full((len(byzantines), len(overlaps)), np.nan)
        for r in rows:
            value = r.get(metric)
            if value is None:
                continue
            i = byzantines.index(r['byzantines'])
            j = overlaps.index(round(r['overlap'], 10))
            grid[i, j] = value
        return byzantines, overlaps, grid

    def plot_sweep_heatmap(
        self,
        rows: List[Dict[str, Any]],
        metric: str = 'validated_ledgers',
        output_file: Optional[str] = None,
        show: bool = False
    ) -> go.Figure:
        """Heatmap of one sweep metric over byzantine count and overlap."""
        byzantines, overlaps, grid = self.sweep_grid(rows, metric)

        fig = go.Figure(
            data=go.Heatmap(
                z=grid,
                x=[f"{o:.2f}" for o in overlaps],
                y=byzantines,
                colorscale='Viridis',
                hovertemplate='Overlap: %{x}<br>Byzantines: %{y}<br>Value: %{z}<extra></extra>'
            )
        )
        fig.update_layout(
            title_text=f"{metric} by Byzantine count and UNL overlap",
            xaxis_title="UNL overlap factor",
            yaxis_title="Byzantine peers",
            template='plotly_white',
            height=600,
            width=900
        )

        self._save(fig, output_file, show, metric)
        return fig

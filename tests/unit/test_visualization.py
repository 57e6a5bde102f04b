"""
Unit tests for unlsim/visualization.py
"""

import math

import plotly.graph_objects as go

from unlsim.visualization import Visualizer


class TestTrustGraph:

    def test_graph_mirrors_unls(self, topology):
        G = Visualizer().create_trust_graph(topology)
        assert G.number_of_nodes() == 20
        assert G.number_of_edges() == sum(len(unl) for unl in topology.unls.values())
        for peer in topology.network:
            assert set(G.successors(peer.id)) == set(topology.unl(peer).ids)
            assert G.nodes[peer.id]["byzantine"] == peer.byzantine

    def test_node_colors(self, topology):
        visualizer = Visualizer()
        G = visualizer.create_trust_graph(topology)
        for node, attrs in G.nodes(data=True):
            color = visualizer.node_color(attrs)
            if attrs["byzantine"]:
                assert color == visualizer.color_scheme["byzantine"]
            elif attrs["common"]:
                assert color == visualizer.color_scheme["common"]
            else:
                assert color == visualizer.color_scheme["honest"]

    def test_plot_returns_figure_and_writes_html(self, topology, tmp_path):
        out = tmp_path / "plots" / "topology.html"
        fig = Visualizer().plot_trust_topology(topology, output_file=str(out))
        assert isinstance(fig, go.Figure)
        assert out.exists()
        assert "Trust Topology" in fig.layout.title.text

    def test_plot_without_output_writes_nothing(self, topology, tmp_path):
        Visualizer().plot_trust_topology(topology)
        assert list(tmp_path.iterdir()) == []


class TestSweepHeatmap:

    rows = [
        {"peers": 10, "byzantines": 0, "overlap": 0.1, "status": "ok", "validated_ledgers": 5},
        {"peers": 10, "byzantines": 0, "overlap": 0.2, "status": "ok", "validated_ledgers": 6},
        {"peers": 10, "byzantines": 2, "overlap": 0.1, "status": "ok", "validated_ledgers": 3},
        {"peers": 10, "byzantines": 2, "overlap": 0.2, "status": "failed"},
    ]

    def test_grid(self):
        byzantines, overlaps, grid = Visualizer().sweep_grid(self.rows, "validated_ledgers")
        assert byzantines == [0, 2]
        assert overlaps == [0.1, 0.2]
        assert grid[0, 0] == 5 and grid[0, 1] == 6 and grid[1, 0] == 3
        assert math.isnan(grid[1, 1])

    def test_heatmap(self, tmp_path):
        out = tmp_path / "heatmap.html"
        fig = Visualizer().plot_sweep_heatmap(self.rows, output_file=str(out))
        assert isinstance(fig.data[0], go.Heatmap)
        assert out.exists()

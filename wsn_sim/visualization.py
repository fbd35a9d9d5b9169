"""
Visualization Module for the clustered mesh.
"""

import matplotlib.pyplot as plt
import pandas as pd
import numpy as np
from matplotlib.lines import Line2D


def plot_network_topology(wsn, save_path: str = 'network_topology.png'):
    """
    Plot devices, cluster heads and the connections between them.
    Symmetric links are solid, one-way links dashed.
    """
    wsn.refresh_connections()
    fig, ax = plt.subplots(figsize=(12, 10))

    heads = [d.index for d in wsn.devices if d.is_ch()]
    colors = plt.cm.tab10(np.linspace(0, 1, max(len(heads), 1)))
    head_color = {idx: colors[i % len(colors)] for i, idx in enumerate(heads)}

    for conn in wsn.connections:
        a = wsn.devices[conn.first]
        b = wsn.devices[conn.second]
        color = head_color.get(conn.second, 'gray')
        ax.plot([a.pos[0], b.pos[0]], [a.pos[1], b.pos[1]], color=color, alpha=0.6,
                linewidth=1, linestyle='-' if conn.symmetric else '--', zorder=1)

    for dev in wsn.devices:
        x, y = dev.pos
        if dev.is_ch():
            ax.scatter(x, y, c=[head_color[dev.index]], s=200, marker='s',
                       edgecolors='black', linewidths=2, zorder=5)
            ax.annotate(f'CH{dev.index}', (x, y), textcoords="offset points", xytext=(0, 10),
                        ha='center', fontsize=8, fontweight='bold')
        elif len(dev.neighbors) == 0:
            ax.scatter(x, y, c='red', s=80, marker='x', zorder=4)
        else:
            color = head_color.get(dev.get_ch(), 'lightgray')
            ax.scatter(x, y, c=[color], s=80, marker='o',
                       edgecolors='gray', linewidths=0.5, zorder=3)

    ax.set_xlabel('X Position (m)', fontsize=12)
    ax.set_ylabel('Y Position (m)', fontsize=12)
    ax.set_title(f'Mesh WSN Topology\n{wsn.get_device_count()} Devices, {len(heads)} Cluster Heads, '
                 f't={wsn.env.get_timestamp()}', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)
    ax.set_aspect('equal')

    legend_elements = [
        Line2D([0], [0], marker='s', color='w', markerfacecolor='gray',
               markersize=10, label='Cluster Head'),
        Line2D([0], [0], marker='o', color='w', markerfacecolor='gray',
               markersize=8, label='Subscriber'),
        Line2D([0], [0], marker='x', color='red', linestyle='None',
               markersize=8, label='Loner'),
        Line2D([0], [0], color='gray', linestyle='-', label='Symmetric link'),
        Line2D([0], [0], color='gray', linestyle='--', label='One-way link'),
    ]
    ax.legend(handles=legend_elements, loc='upper right', fontsize=10)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Network topology saved to: {save_path}")


def plot_power_usage(table: pd.DataFrame, save_path: str = 'power_usage.png'):
    """Per-device charge drawn and radio duty cycle (from MeshWSN.device_table)."""
    fig, axes = plt.subplots(2, 1, figsize=(14, 8), sharex=True)
    bar_colors = np.where(table['is_ch'], 'tab:orange', 'tab:blue')

    ax1 = axes[0]
    ax1.bar(table.index, table['usage_mAh'].fillna(0.0), color=bar_colors)
    ax1.set_ylabel('Usage (mAh)', fontsize=12)
    ax1.set_title('Power Usage after Stabilization\n(orange = cluster head)',
                  fontsize=12, fontweight='bold')
    ax1.grid(axis='y', alpha=0.3)

    ax2 = axes[1]
    ax2.bar(table.index, table['duty_cycle'] * 100, color=bar_colors)
    ax2.set_xlabel('Device', fontsize=12)
    ax2.set_ylabel('Radio duty cycle (%)', fontsize=12)
    ax2.set_ylim(0, 105)
    ax2.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"Power usage plot saved to: {save_path}")

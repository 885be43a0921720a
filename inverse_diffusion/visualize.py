"""
Visualization module using Plotly for inverse-design results.
"""

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots
from typing import Dict, List, Optional


def plot_initial_conditions(
    cell_centers: np.ndarray,
    specified: Optional[np.ndarray] = None,
    own: Optional[np.ndarray] = None,
    reference: Optional[np.ndarray] = None,
    guess: Optional[np.ndarray] = None,
) -> go.Figure:
    """
    Compare the initial condition used to build the target with the
    optimized ones.

    Args:
        cell_centers: Grid cell midpoints
        specified: Initial condition that generated the target
        own: Result of the Newton optimizer
        reference: Result of the scipy reference optimizer
        guess: Starting point of both optimizers

    Returns:
        Plotly Figure
    """
    fig = go.Figure()

    if guess is not None:
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=guess,
                mode='lines',
                line=dict(color='#7f7f7f', width=1, dash='dot'),
                name='Initial guess',
            )
        )

    if specified is not None:
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=specified,
                mode='lines',
                line=dict(color='black', width=2),
                name='Specified IC used to make target',
            )
        )

    if own is not None:
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=own,
                mode='markers',
                marker=dict(size=8, color='#1f77b4', symbol='circle'),
                name='Newton optimizer',
            )
        )

    if reference is not None:
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=reference,
                mode='lines',
                line=dict(color='#ff7f0e', width=2, dash='dash'),
                name='scipy reference',
            )
        )

    fig.update_layout(
        title='Optimized Initial Condition',
        xaxis_title='x',
        yaxis_title='C(x, 0)',
        height=450,
    )

    return fig


def plot_final_fields(
    cell_centers: np.ndarray,
    target: np.ndarray,
    finals: Dict[str, np.ndarray],
) -> go.Figure:
    """
    Plot the target field against final fields recomputed from optimized
    initial conditions.

    Args:
        cell_centers: Grid cell midpoints
        target: Goal field
        finals: Mapping label -> final field

    Returns:
        Plotly Figure with the fields on top and residuals below
    """
    fig = make_subplots(
        rows=2, cols=1,
        shared_xaxes=True,
        subplot_titles=('Final solution', 'Residual vs target'),
        row_heights=[0.65, 0.35],
    )

    colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd']
    symbols = ['circle', 'diamond', 'triangle-up', 'x', 'cross']

    fig.add_trace(
        go.Scatter(
            x=cell_centers, y=target,
            mode='lines+markers',
            line=dict(color='black', width=2),
            marker=dict(size=8, symbol='square'),
            name='Target',
        ),
        row=1, col=1
    )

    for i, (label, final) in enumerate(finals.items()):
        color = colors[i % len(colors)]
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=final,
                mode='markers',
                marker=dict(size=7, color=color, symbol=symbols[i % len(symbols)]),
                name=label,
            ),
            row=1, col=1
        )
        fig.add_trace(
            go.Scatter(
                x=cell_centers, y=np.asarray(final) - np.asarray(target),
                mode='lines+markers',
                line=dict(color=color, width=1),
                marker=dict(size=4),
                name=f'{label} residual',
                showlegend=False,
            ),
            row=2, col=1
        )

    fig.update_layout(
        title='Final solution using optimized initial condition',
        height=600,
    )
    fig.update_xaxes(title_text='x', row=2, col=1)

    return fig


def plot_convergence_history(history: List[Dict]) -> go.Figure:
    """
    Plot cost and max|grad| per Newton iteration on a log axis.
    """
    iterations = [h['iteration'] for h in history]

    fig = go.Figure()

    fig.add_trace(
        go.Scatter(
            x=iterations,
            y=[h['cost'] for h in history],
            mode='lines+markers',
            line=dict(color='#1f77b4', width=2),
            marker=dict(size=4),
            name='Cost',
        )
    )

    fig.add_trace(
        go.Scatter(
            x=iterations,
            y=[h['grad_norm'] for h in history],
            mode='lines+markers',
            line=dict(color='#d62728', width=2),
            marker=dict(size=4),
            name='max |grad|',
        )
    )

    fig.update_layout(
        title='Newton Convergence',
        xaxis_title='Iteration',
        yaxis_title='Value',
        yaxis_type='log',
        height=400,
    )

    return fig

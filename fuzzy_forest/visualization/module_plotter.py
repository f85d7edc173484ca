import matplotlib
matplotlib.use("Agg")  # Non-interactive backend; plots are only written to disk
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import logging
from pathlib import Path


class ModulePlotter:
    """
    Plots how the selected features are distributed over modules:
    the proportion of each module's features that was selected, annotated
    with the module size.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        sns.set_theme(style="whitegrid")

    def plot_module_summary(self, summary: pd.DataFrame, output_path: Path) -> Path:
        """
        Args:
            summary: FuzzyForestResult.module_summary() table.
            output_path: PNG destination.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        labels = summary['module'].astype(str)
        fig, ax = plt.subplots(figsize=(max(6, 0.8 * len(summary)), 4.5))
        try:
            sns.barplot(x=labels, y=summary['proportion_selected'], color="#1f77b4", ax=ax)
            for i, (size, n_sel) in enumerate(zip(summary['module_size'], summary['n_selected'])):
                ax.annotate(f"{n_sel}/{size}", (i, summary['proportion_selected'].iloc[i]),
                            ha='center', va='bottom', fontsize=8)
            ax.set_ylim(0, 1.05)
            ax.set_xlabel("Module")
            ax.set_ylabel("Proportion of module selected")
            ax.set_title("Selected features by module")
            plt.setp(ax.get_xticklabels(), rotation=45, ha='right')
            fig.tight_layout()
            fig.savefig(output_path, dpi=150)
        finally:
            plt.close(fig)

        self.logger.info(f"Module plot saved to {output_path}")
        return output_path

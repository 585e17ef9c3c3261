from __future__ import annotations

from torch.utils.data import DataLoader, Dataset

from edgegnn.typing import collate_graphs


def make_dataloader(
    dataset: Dataset,
    *,
    batch_size: int = 1,
    shuffle: bool = False,
    num_workers: int = 0,
) -> DataLoader:
    """
    batch_size > 1 merges graphs into one disjoint graph per batch; batch_size = 1
    yields each graph as-is (one optimizer step per graph).
    """
    return DataLoader(
        dataset,
        batch_size=batch_size,
        shuffle=shuffle,
        num_workers=num_workers,
        collate_fn=collate_graphs,
    )

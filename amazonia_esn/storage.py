# amazonia_esn/storage.py
import io
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import numpy as np
from scipy import sparse

from amazonia_esn.config import HyperparameterSet
from amazonia_esn.core.reservoir import ReservoirModel
from amazonia_esn.ensemble.predictor import Ensemble
from amazonia_esn.readout.ridge import OutputWeights

logger = logging.getLogger(__name__)

RESERVOIR = "reservoir"
WEIGHTS = "weights"


class ArtifactStore(ABC):
    """Byte store keyed by (kind, member index); kinds are 'reservoir' and 'weights'."""

    @abstractmethod
    def save(self, kind: str, index: int, data: bytes, overwrite: bool = False) -> None:
        ...

    @abstractmethod
    def load(self, kind: str, index: int) -> bytes:
        ...

    @abstractmethod
    def exists(self, kind: str, index: int) -> bool:
        ...


class MemoryArtifactStore(ArtifactStore):
    def __init__(self):
        self._data: Dict[Tuple[str, int], bytes] = {}

    def save(self, kind: str, index: int, data: bytes, overwrite: bool = False) -> None:
        if not overwrite and (kind, index) in self._data:
            raise FileExistsError(f"Artifact {kind} #{index} already exists")
        self._data[(kind, index)] = bytes(data)

    def load(self, kind: str, index: int) -> bytes:
        try:
            return self._data[(kind, index)]
        except KeyError:
            raise FileNotFoundError(f"No artifact {kind} #{index}") from None

    def exists(self, kind: str, index: int) -> bool:
        return (kind, index) in self._data


class FileArtifactStore(ArtifactStore):
    """One file per artifact: esn_states/esn_<i>.npz and W_Matrix/W_<i>.npz under root."""

    LAYOUT = {
        RESERVOIR: ("esn_states", "esn_{index}.npz"),
        WEIGHTS: ("W_Matrix", "W_{index}.npz"),
    }

    def __init__(self, root: str):
        self.root = root

    def path(self, kind: str, index: int) -> str:
        if kind not in self.LAYOUT:
            raise ValueError(f"Unknown artifact kind '{kind}', expected one of {sorted(self.LAYOUT)}")
        directory, pattern = self.LAYOUT[kind]
        return os.path.join(self.root, directory, pattern.format(index=index))

    def save(self, kind: str, index: int, data: bytes, overwrite: bool = False) -> None:
        path = self.path(kind, index)
        if os.path.exists(path) and not overwrite:
            raise FileExistsError(f"Artifact already written: {path}")
        os.makedirs(os.path.dirname(path), exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_path, path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def load(self, kind: str, index: int) -> bytes:
        with open(self.path(kind, index), "rb") as f:
            return f.read()

    def exists(self, kind: str, index: int) -> bool:
        return os.path.exists(self.path(kind, index))


def _to_npz(**arrays) -> bytes:
    buf = io.BytesIO()
    np.savez(buf, **arrays)
    return buf.getvalue()


def _from_npz(data: bytes):
    return np.load(io.BytesIO(data), allow_pickle=False)


def serialize_model(model: ReservoirModel) -> bytes:
    p = model.params
    return _to_npz(
        W_res_data=model.W_res.data,
        W_res_indices=model.W_res.indices,
        W_res_indptr=model.W_res.indptr,
        W_res_shape=np.array(model.W_res.shape),
        W_in=model.W_in,
        reservoir_size=p.reservoir_size,
        spectral_radius=p.spectral_radius,
        sparsity=p.sparsity,
        input_scale=np.atleast_1d(np.asarray(p.input_scale, dtype=float)),
        ridge_param=p.ridge_param,
        seed=-1 if model.seed is None else model.seed,
    )


def deserialize_model(data: bytes) -> ReservoirModel:
    with _from_npz(data) as npz:
        W_res = sparse.csr_matrix((npz["W_res_data"], npz["W_res_indices"], npz["W_res_indptr"]),
                                  shape=tuple(npz["W_res_shape"]))
        scales = npz["input_scale"]
        params = HyperparameterSet(
            reservoir_size=int(npz["reservoir_size"]),
            spectral_radius=float(npz["spectral_radius"]),
            sparsity=float(npz["sparsity"]),
            input_scale=float(scales[0]) if scales.size == 1 else tuple(scales),
            ridge_param=float(npz["ridge_param"]),
        )
        seed = int(npz["seed"])
        return ReservoirModel(W_res, npz["W_in"], params, seed=None if seed < 0 else seed)


def serialize_weights(weights: OutputWeights) -> bytes:
    return _to_npz(matrix=weights.matrix, fingerprint=np.array(weights.fingerprint),
                   ridge_param=weights.ridge_param, washout=weights.washout)


def deserialize_weights(data: bytes) -> OutputWeights:
    with _from_npz(data) as npz:
        matrix = npz["matrix"]
        matrix.setflags(write=False)
        return OutputWeights(matrix=matrix, fingerprint=str(npz["fingerprint"]),
                             ridge_param=float(npz["ridge_param"]), washout=int(npz["washout"]))


def save_ensemble(store: ArtifactStore, ensemble: Ensemble, overwrite: bool = False) -> int:
    """Write each member as reservoir/weights artifacts keyed 1..N in ensemble order."""
    for i, member in enumerate(ensemble.members, start=1):
        store.save(RESERVOIR, i, serialize_model(member.model), overwrite=overwrite)
        store.save(WEIGHTS, i, serialize_weights(member.weights), overwrite=overwrite)
    logger.info("Saved %d ensemble members", len(ensemble))
    return len(ensemble)


def load_ensemble(store: ArtifactStore, n_members: int, params: Optional[HyperparameterSet] = None,
                  n_failed: int = 0) -> Ensemble:
    pairs = []
    for i in range(1, n_members + 1):
        model = deserialize_model(store.load(RESERVOIR, i))
        weights = deserialize_weights(store.load(WEIGHTS, i))
        model.check_weights(weights)
        pairs.append((model, weights))
    if params is None and pairs:
        params = pairs[0][0].params
    return Ensemble.from_pairs(pairs, params=params, n_failed=n_failed)

from amazonia_esn.ensemble.members import EnsembleMember, fit_member, fit_member_with_retry
from amazonia_esn.ensemble.predictor import (
    Ensemble,
    EnsemblePrediction,
    predict_ensemble,
    reduce_members,
    train_ensemble,
)

from amazonia_esn.readout.ridge import OutputWeights, ridge_solve, train_readout, train_readout_with_state

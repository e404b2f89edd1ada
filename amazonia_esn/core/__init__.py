from amazonia_esn.core.reservoir import ReservoirModel, generate_reservoir, generate_from_params, generate_esn

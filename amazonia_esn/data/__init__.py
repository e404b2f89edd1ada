from amazonia_esn.data.features import align_features, proximity_signal, trailing_mean, yearly_cycle
from amazonia_esn.data.splitter import SplitData, split_series, split_with_config
from amazonia_esn.data.synthetic import sine_wave_series

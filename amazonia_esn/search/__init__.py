from amazonia_esn.search.random_search import SearchResult, TrialRecord, evaluate_trial, random_search

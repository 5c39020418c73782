"""
XOR Problem Implementation for NEvA

This module runs the classic XOR (exclusive OR) benchmark with NEvA.

The XOR Problem:
    XOR is a two-input, one-output boolean function where the output is 1
    only when the inputs differ:
        Input (0, 0) → Output 0
        Input (0, 1) → Output 1
        Input (1, 0) → Output 1
        Input (1, 1) → Output 0

    A network made only of input-to-output connections cannot solve it, so
    the population has to grow hidden structure.

Fitness Function:
    Fitness = sqrt(Σ(output - target)²) / 4, minimized.

    The run succeeds when the best fitness drops to 'fitness_threshold'.

Classes:
    Trial_XOR:      NEvA trial for solving XOR
    Experiment_XOR: Multi-trial experiment for XOR with statistical analysis

Usage:
    Single Trial:
        python trial_XOR.py

    Experiment (Multiple Trials):
        python trial_XOR.py 20
"""

import sys
from pathlib    import Path
from statistics import mean

from neva.problems import XorFunction
from neva.run      import Config, Experiment, Trial

class Trial_XOR(Trial):
    """
    NEvA trial for solving the XOR problem.

    Implemented Methods:
        _report_progress(): Display generation statistics and the XOR truth table
        _final_report():    Display the best genome and its test error
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        super().__init__(config, XorFunction(), suppress_output)

    def _report_progress(self):
        """
        Print a report describing the current generation.
        """
        stats = self.stats[-1]
        best  = self.best_genome

        s  = f"===============\n"
        s += f"GENERATION {self._generation_counter:04d}\n"
        s += f"best fitness   = {self.best_fitness.value:.4f}\n"
        s += f"mean fitness   = {stats.fitness_mean:.4f}\n"
        s += f"mean hidden    = {stats.hidden_mean:.2f}\n"
        s += f"mean edges     = {stats.edges_mean:.2f}\n"
        s += f"nodes locked   = {stats.nodes_locked}\n"
        s += f"best network   = {best.hidden_count} hidden, {best.size} edges\n"
        s += '\n'

        s += "input         output   target  error\n"
        s += "------------------------------------\n"

        phenotype = best.clone().build()
        for inputs, expected in XorFunction.samples:
            output = phenotype.forward_pass(inputs)[0]
            s += f"{list(inputs)} -> {output:.4f}    {expected[0]}   {abs(output - expected[0]):.4f}\n"

        print(s)

    def _final_report(self):
        """
        Display results at the end of the trial.
        """
        s  = "\nRESULT: " + ("[FAILED]" if self.failed else "[SUCCESS]") + "\n"
        s += f"generations  = {self._generation_counter}\n"
        s += f"best fitness = {self.best_fitness.value:.4f}\n"
        s += f"test error   = {self.test_best().value:.4f}\n"
        s += f"best genome  = {self.best_genome}\n"
        print(s)

class Experiment_XOR(Experiment):

    def __init__(self, num_trials: int, config: Config):
        """
        Initialize XOR experiment with multiple trials.

        Parameters:
            num_trials: Number of trials in this experiment
            config:     Configuration parameters
        """
        super().__init__(Trial_XOR, num_trials, config)

    def _analyze_trial_results(self, results: dict):
        """
        Extract results of each trial, once complete.
        """
        super()._analyze_trial_results(results)

        s  = f"Trial {results['trial_number']:03d}: "
        s += f"best fitness={results['best_fitness']:.4f}, "
        s += f"hidden={results['number_hidden']:2}, "
        s += f"edges={results['number_edges']:3}, "
        s += f"generations={results['number_generations']:3} "
        s += "[SUCCESS]" if results['success'] else "[FAILED]"
        print(s)

    def _final_report(self):
        """
        Produce the final report, aggregating the data obtained from each trial.
        """
        success_rate = self._success_counter / self._trial_counter

        # the minimal XOR network needs a single hidden node
        count_min_network = self._number_hidden.count(1)

        s  = "\nSUMMARY:\n"
        s += f"Total trials          = {self._trial_counter}\n"
        s += f"Success rate          = {100*success_rate:.0f}%\n"
        s += f"Avg # hidden nodes    = {mean(self._number_hidden):.2f}\n"
        s += f"Avg # edges           = {mean(self._number_edges):.2f}\n"
        s += f"Avg # generations     = {mean(self._number_generations):.0f}\n"
        s += f"Avg best fitness      = {mean(self._best_fitness):.4f}\n"
        s += f"Found minimal network = {100 * count_min_network/self._trial_counter:.0f}%\n"
        if self.average_stats:
            s += f"Avg final mean hidden = {self.average_stats[-1].hidden_mean:.2f}\n"
        print(s)

if __name__ == "__main__":
    config = Config(str(Path(__file__).parent / "config_xor.ini"))

    if len(sys.argv) > 1:
        experiment = Experiment_XOR(num_trials=int(sys.argv[1]), config=config)
        experiment.run(num_jobs_trials=-1)
    else:
        trial = Trial_XOR(config)
        trial.run(num_jobs=1)
